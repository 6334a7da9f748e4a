"""
Credential profiles for the LSEG Data Platform.

Each profile bundles the username/password/application key used for one
category of data (market data, news, Lipper fund analytics). Profiles are
read from the environment once and handed to a CredentialStore.
"""

import logging
import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from utils.log import mask_key, presence

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "DEFAULT"
PROFILE_NAMES = ("MARKET_DATA", "NEWS", "LIPPER", DEFAULT_PROFILE)

# Older deployments used a shorter env suffix for some profiles
LEGACY_SUFFIXES = {"MARKET_DATA": "MD"}


@dataclass(frozen=True)
class CredentialProfile:
    """Username/password/application key for one profile."""
    name: str
    username: Optional[str] = None
    password: Optional[str] = None
    app_key: str = ""

    def masked(self, absent: str = "MISSING") -> Dict[str, str]:
        """Loggable view: presence flags and a key prefix only."""
        return {
            "username": presence(self.username, absent=absent),
            "password": presence(self.password, absent=absent),
            "app_key": mask_key(self.app_key, absent=absent),
        }


def _read(environ: Mapping[str, str], var: str, suffixes) -> Optional[str]:
    for suffix in suffixes:
        value = (environ.get(f"{var}_{suffix}") or "").strip()
        if value:
            return value
    return None


class CredentialConfig:
    """Immutable table of credential profiles, keyed by upper-case name."""

    def __init__(self, profiles: Mapping[str, CredentialProfile]):
        self._profiles = {name.upper(): p for name, p in profiles.items()}
        if DEFAULT_PROFILE not in self._profiles:
            self._profiles[DEFAULT_PROFILE] = CredentialProfile(name=DEFAULT_PROFILE)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CredentialConfig":
        """
        Build profiles from RDP_USER_<PROFILE>, RDP_PASSWORD_<PROFILE>
        and RDP_APP_KEY_<PROFILE>.
        """
        environ = os.environ if environ is None else environ
        profiles = {}
        for name in PROFILE_NAMES:
            suffixes = [name]
            if name in LEGACY_SUFFIXES:
                suffixes.append(LEGACY_SUFFIXES[name])
            profiles[name] = CredentialProfile(
                name=name,
                username=_read(environ, "RDP_USER", suffixes),
                password=_read(environ, "RDP_PASSWORD", suffixes),
                app_key=_read(environ, "RDP_APP_KEY", suffixes) or "",
            )
        return cls(profiles)

    def get(self, name: str) -> Optional[CredentialProfile]:
        return self._profiles.get(name)

    def names(self):
        return list(self._profiles)


class CredentialStore:
    """Case-insensitive profile lookup with DEFAULT fallback."""

    def __init__(self, config: CredentialConfig):
        self.config = config
        logger.info("Loaded credential profiles:")
        for name, masked in self.summary().items():
            logger.info(f"  {name}: {masked}")

    def get_credentials(self, profile_name: Optional[str]) -> CredentialProfile:
        """
        Resolve a profile name to its credentials.

        Args:
            profile_name: Profile name in any case (e.g. 'lipper', 'Market_Data')

        Returns:
            The matching profile, or the DEFAULT profile when the name is unknown.
            Never raises.
        """
        upper = (profile_name or DEFAULT_PROFILE).upper()
        creds = self.config.get(upper) or self.config.get(DEFAULT_PROFILE)
        logger.info(f'Looking up credentials for "{profile_name}" -> "{upper}"')
        logger.info(f"Found credentials ({creds.name}): {creds.masked(absent='EMPTY')}")
        return creds

    def summary(self) -> Dict[str, Dict[str, str]]:
        """Masked view of every configured profile."""
        return {name: self.config.get(name).masked() for name in self.config.names()}
