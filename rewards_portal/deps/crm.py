from rewards_portal.config import get_settings
from rewards_portal.services.crm_client import CrmClient


def get_crm_client():
    settings = get_settings()
    if not settings.crm_access_token:
        yield None
        return

    client = CrmClient.from_settings(settings)
    try:
        yield client
    finally:
        client.close()
