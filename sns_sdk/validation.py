"""
Domain name grammar for registration.

Derivation accepts any string; these rules describe which names the
registrar front-ends accept.
"""

import re
from typing import Optional

from sns_sdk.errors import InvalidDomainError

VALID_DOMAIN_PATTERN = re.compile(r"[a-z0-9\-]+")
NUMERIC_PATTERN = re.compile(r"[0-9]+")


class DomainValidator:
    """
    Validates SNS domain labels, subdomains and dotted paths.

    Handles:
    - 1-64 characters of a-z, 0-9 and hyphen
    - no leading, trailing or doubled hyphen
    - reserved, all-numeric and IP-like names
    - subdomain/parent combinations
    """

    MAX_DOMAIN_LENGTH = 64
    # sub + "." + parent + ".sol"
    MAX_FULL_DOMAIN_LENGTH = 100

    RESERVED_DOMAINS = frozenset({
        "sol", "www", "api", "admin", "root", "system", "network", "protocol",
        "service", "config", "status", "health", "debug", "test", "demo",
        "example", "placeholder", "reserved", "null", "undefined", "void",
        "empty", "blank", "default", "localhost", "solana", "bonfida", "sns",
    })

    @classmethod
    def validate_domain(cls, domain: str) -> None:
        """Raise InvalidDomainError with the first rule ``domain`` breaks."""
        if not domain:
            raise InvalidDomainError(domain, "Domain cannot be empty")
        if len(domain) > cls.MAX_DOMAIN_LENGTH:
            raise InvalidDomainError(domain, f"Domain cannot exceed {cls.MAX_DOMAIN_LENGTH} characters")
        if cls._looks_like_ip_address(domain):
            raise InvalidDomainError(domain, "Domain cannot look like an IP address")
        if not VALID_DOMAIN_PATTERN.fullmatch(domain):
            raise InvalidDomainError(domain, "Domain can only contain lowercase letters, numbers, and hyphens")
        if domain.startswith("-") or domain.endswith("-"):
            raise InvalidDomainError(domain, "Domain cannot start or end with a hyphen")
        if "--" in domain:
            raise InvalidDomainError(domain, "Domain cannot contain consecutive hyphens")
        if domain.lower() in cls.RESERVED_DOMAINS:
            raise InvalidDomainError(domain, "Domain is reserved and cannot be registered")
        if NUMERIC_PATTERN.fullmatch(domain):
            raise InvalidDomainError(domain, "Domain cannot be all numeric")

    @classmethod
    def is_valid_domain(cls, domain: str) -> bool:
        try:
            cls.validate_domain(domain)
        except InvalidDomainError:
            return False
        return True

    @classmethod
    def validate_subdomain(cls, subdomain: str, parent: str) -> None:
        cls.validate_domain(subdomain)
        cls.validate_domain(parent)

        if subdomain.lower() == parent.lower():
            raise InvalidDomainError(subdomain, "Subdomain cannot be the same as parent domain")
        if subdomain == "www":
            raise InvalidDomainError(subdomain, '"www" is not allowed as a subdomain')
        if len(subdomain) + 1 + len(parent) + 4 > cls.MAX_FULL_DOMAIN_LENGTH:
            raise InvalidDomainError(subdomain, "Combined subdomain and parent domain length is too long")

    @classmethod
    def is_valid_subdomain(cls, subdomain: str, parent: str) -> bool:
        try:
            cls.validate_subdomain(subdomain, parent)
        except InvalidDomainError:
            return False
        return True

    @classmethod
    def validate_domain_path(cls, full_domain: str) -> None:
        """Validate a dotted path such as ``sub.domain``."""
        if not full_domain:
            raise InvalidDomainError(full_domain, "Domain path cannot be empty")

        parts = full_domain.split(".")
        for part in parts:
            try:
                cls.validate_domain(part)
            except InvalidDomainError as exc:
                raise InvalidDomainError(full_domain, f'Invalid part "{part}": {exc.reason}') from exc

        if len(parts) > 1:
            try:
                cls.validate_subdomain(parts[0], ".".join(parts[1:]))
            except InvalidDomainError as exc:
                raise InvalidDomainError(full_domain, exc.reason) from exc

    @classmethod
    def is_valid_domain_path(cls, full_domain: str) -> bool:
        try:
            cls.validate_domain_path(full_domain)
        except InvalidDomainError:
            return False
        return True

    @staticmethod
    def normalize_domain(domain: str) -> str:
        return domain.strip().lower()

    @staticmethod
    def extract_root_domain(full_domain: str) -> str:
        return full_domain.split(".")[-1]

    @staticmethod
    def extract_subdomain(full_domain: str) -> Optional[str]:
        parts = full_domain.split(".")
        if len(parts) <= 1:
            return None
        return ".".join(parts[:-1])

    @staticmethod
    def _looks_like_ip_address(domain: str) -> bool:
        parts = domain.split(".")
        if len(parts) == 4:
            return all(part.isdecimal() and 0 <= int(part) <= 255 for part in parts)
        return ":" in domain
