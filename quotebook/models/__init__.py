# Models package for quotebook (registers all tables on Base)

from .client import Client
from .company_settings import CompanySettings
from .master_item import MasterItem, MasterItemPriceHistory
from .notification import Notification, NotificationSettings
from .profile import Profile
from .project import Project
from .quote import Quote, QuoteDetail, QuoteGroup, QuoteItem, QuoteStatusHistory
from .quote_template import QuoteTemplate
from .supplier import Supplier
from .transaction import RevenueRecognitionLog, Transaction

__all__ = [
    "Client",
    "CompanySettings",
    "MasterItem",
    "MasterItemPriceHistory",
    "Notification",
    "NotificationSettings",
    "Profile",
    "Project",
    "Quote",
    "QuoteDetail",
    "QuoteGroup",
    "QuoteItem",
    "QuoteStatusHistory",
    "QuoteTemplate",
    "RevenueRecognitionLog",
    "Supplier",
    "Transaction",
]
