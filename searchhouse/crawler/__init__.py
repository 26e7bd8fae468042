"""
Web crawler core components.
"""

from .url_frontier import URLFrontier, URLEntry
from .shard_router import ShardRouter, shard_of, get_hostname
from .fetcher import WebFetcher, FetchResult
from .parser import ContentParser, WebPage
from .url_validator import URLValidator, CandidateURL, StructuralPattern, ExtensionBlocklist
from .host_eligibility import HostEligibility, WordPressDetector, AllowAllHosts

__all__ = [
    'URLFrontier', 'URLEntry',
    'ShardRouter', 'shard_of', 'get_hostname',
    'WebFetcher', 'FetchResult',
    'ContentParser', 'WebPage',
    'URLValidator', 'CandidateURL', 'StructuralPattern', 'ExtensionBlocklist',
    'HostEligibility', 'WordPressDetector', 'AllowAllHosts'
]
