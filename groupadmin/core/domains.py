"""
Email domain rules used for automatic group membership.
"""

import re

DOMAIN_SEPARATOR = "|"

# One or more dot-separated hostname labels.
VALID_DOMAIN = re.compile(
    r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?(?:\.[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?)*$"
)


def parse_domains(domain_pattern: str | None) -> list[str]:
    """
    Split a pipe-delimited domain list (e.g. ``a.org|b.com``) into its valid,
    lower-cased entries. Malformed entries are dropped rather than raising.
    """
    if not domain_pattern:
        return []

    domains = []

    for entry in domain_pattern.split(DOMAIN_SEPARATOR):
        entry = entry.strip().lower()

        if VALID_DOMAIN.match(entry) and entry not in domains:
            domains.append(entry)

    return domains
