import re
from typing import Iterable, Optional

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

NOT_AUTHORIZED_MESSAGE = (
    "This email is not authorized to access Symposium. "
    "Please contact the administrator for access."
)


def is_well_formed(email: Optional[str]) -> bool:
    return bool(email) and EMAIL_RE.match(email.strip()) is not None


class EmailAllowlist:
    """
    Access gate over individually approved addresses and approved domains.

    In development, with neither list configured, every well-formed address passes.
    """

    def __init__(self, emails: Iterable[str] = (), domains: Iterable[str] = (), development: bool = False):
        self.emails = {e.strip().lower() for e in emails if e and e.strip()}
        self.domains = {d.strip().lower() for d in domains if d and d.strip()}
        self.development = development

    @property
    def configured(self) -> bool:
        return bool(self.emails or self.domains)

    def is_allowed(self, email: Optional[str]) -> bool:
        if not is_well_formed(email):
            return False
        normalized = email.strip().lower()
        if normalized in self.emails:
            return True
        domain = normalized.split("@", 1)[1]
        return domain in self.domains

    def is_allowed_with_dev_mode(self, email: Optional[str]) -> bool:
        if self.development and not self.configured:
            return is_well_formed(email)
        return self.is_allowed(email)
