from site_api.config import Settings
from site_api.db.supabase import insert_row
from site_api.models.lead import LeadSubmission
from site_api.utils.logger import get_logger

logger = get_logger(__name__)


def insert_lead(settings: Settings, lead: LeadSubmission) -> None:
    """
    Insert a new lead into the leads table.
    Only name, email, message and source are written.
    """
    insert_row(settings, settings.supabase_leads_table, lead.as_record())
    logger.info("Lead stored successfully email=%s source=%s", lead.email, lead.source)
