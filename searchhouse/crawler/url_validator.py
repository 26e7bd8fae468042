"""
URL validation as an ordered list of predicates over a parsed URL.

Rules run in order and stop at the first rejection, so cheap structural
checks run before the host eligibility check, which may hit the network.
"""

import inspect
import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, List, Optional, Union
from urllib.parse import SplitResult, urlsplit


@dataclass(frozen=True)
class CandidateURL:
    """A URL string together with its parsed components."""
    raw: str
    parts: SplitResult

    @classmethod
    def parse(cls, url: str) -> Optional['CandidateURL']:
        try:
            parts = urlsplit(url)
            # Accessing port validates it
            parts.port
        except ValueError:
            return None
        return cls(raw=url, parts=parts)

    @property
    def hostname(self) -> str:
        return (self.parts.hostname or '').lower()

    @property
    def path(self) -> str:
        return self.parts.path


URLRule = Callable[[CandidateURL], Union[bool, Awaitable[bool]]]


class StructuralPattern:
    """https:// scheme, a dotted hostname and a path of URL-safe characters."""

    PATTERN = re.compile(
        r'(?P<scheme>https://)'
        r'(?P<hostname>[-a-zA-Z0-9@:%._+~=]{1,256}\.[a-zA-Z0-9()]{1,6})'
        r"(?P<resource>[-a-zA-Z0-9()@:_+~?=/.%&,;!*'$]*)"
    )

    def __call__(self, candidate: CandidateURL) -> bool:
        return self.PATTERN.fullmatch(candidate.raw) is not None


class ExtensionBlocklist:
    """Rejects paths ending in a known non-HTML file extension."""

    DEFAULT_EXTENSIONS = (
        'css', 'js', 'bmp', 'gif', 'jpeg', 'jpg', 'ico', 'png', 'tif', 'tiff', 'mid',
        'mp2', 'mp3', 'mp4', 'ppsx', 'wav', 'avi', 'mov', 'mpeg', 'ram', 'm4v', 'mkv',
        'ogg', 'ogv', 'pdf', 'odc', 'sas', 'ps', 'eps', 'tex', 'ppt', 'pptx', 'doc',
        'docx', 'xls', 'xlsx', 'names', 'data', 'dat', 'exe', 'bz2', 'tar', 'msi',
        'bin', '7z', 'psd', 'dmg', 'iso', 'epub', 'dll', 'cnf', 'tgz', 'sha1', 'ss',
        'scm', 'py', 'rkt', 'r', 'c', 'thmx', 'mso', 'arff', 'rtf', 'jar', 'csv',
        'java', 'txt', 'rm', 'smil', 'wmv', 'swf', 'wma', 'zip', 'rar', 'gz',
    )

    def __init__(self, extensions: Optional[Iterable[str]] = None):
        self.extensions = frozenset(
            ext.lower().lstrip('.') for ext in (extensions or self.DEFAULT_EXTENSIONS)
        )

    def __call__(self, candidate: CandidateURL) -> bool:
        last_segment = candidate.path.lower().rsplit('/', 1)[-1]
        if '.' not in last_segment:
            return True
        return last_segment.rsplit('.', 1)[-1] not in self.extensions


class URLValidator:
    """Applies rules in order; a URL is valid when every rule accepts it."""

    def __init__(self, rules: Optional[List[URLRule]] = None):
        self.rules: List[URLRule] = list(rules) if rules is not None else [
            StructuralPattern(),
            ExtensionBlocklist(),
        ]
        self.logger = logging.getLogger(__name__)

    def with_rule(self, rule: URLRule) -> 'URLValidator':
        """Return a validator with rule appended after the existing ones."""
        return URLValidator(self.rules + [rule])

    async def is_valid(self, url: str) -> bool:
        candidate = CandidateURL.parse(url)
        if candidate is None:
            return False
        for rule in self.rules:
            result = rule(candidate)
            if inspect.isawaitable(result):
                result = await result
            if not result:
                self.logger.debug(f"{type(rule).__name__} rejected {url}")
                return False
        return True
