from ioc_lens.models.user import User
from ioc_lens.models.ioc import IocRecord
from ioc_lens.models.record_access import RecordAccess
from ioc_lens.models.search_query import SearchQuery

__all__ = ["User", "IocRecord", "RecordAccess", "SearchQuery"]
