"""Email transport."""
from .smtp_client import SMTPEmailClient

__all__ = ["SMTPEmailClient"]
