import logging
import os
from typing import Optional

import yaml

from pagechain.domain.profile import CrawlProfile
from pagechain.exceptions import ProfileNotFoundError
from pagechain.services.profile_parser import ProfileParser

logger = logging.getLogger(__name__)

_EXTENSIONS = (".yml", ".yaml")


class ProfileFileStore:
    """Filesystem/YAML IO for crawl profile files.

    Responsibility: locate, read, and parse YAML files on disk. Profiles are
    read-only here; editing them is up to whoever owns the directory.
    """

    def __init__(self, *, profiles_dir: str, parser: Optional[ProfileParser] = None):
        self.profiles_dir = profiles_dir
        self.parser = parser or ProfileParser()

    def list_profile_files(self) -> list[str]:
        if not os.path.isdir(self.profiles_dir):
            return []
        return sorted(fname for fname in os.listdir(self.profiles_dir) if fname.endswith(_EXTENSIONS))

    def _resolve_path(self, profile_path: str) -> Optional[str]:
        if os.path.isabs(profile_path):
            return profile_path
        candidates = [profile_path] if profile_path.endswith(_EXTENSIONS) else [profile_path + ext for ext in _EXTENSIONS]
        for candidate in candidates:
            full_path = os.path.join(self.profiles_dir, candidate)
            if os.path.isfile(full_path):
                return full_path
        return None

    def load_yaml_dict(self, profile_path: str) -> Optional[dict]:
        """Return parsed YAML dict for `profile_path`, or None if missing/invalid."""
        full_path = self._resolve_path(profile_path)
        if full_path is None or not os.path.isfile(full_path):
            return None
        try:
            with open(full_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Could not read profile %s: %s", full_path, e)
            return None
        return data if isinstance(data, dict) else None

    def load_profile(self, name: str) -> CrawlProfile:
        """Load and validate a profile by file name (extension optional).

        Raises `ProfileNotFoundError` when the file is missing or unreadable and
        `ProfileValidationError` when its rules are invalid.
        """
        data = self.load_yaml_dict(name)
        if data is None:
            raise ProfileNotFoundError(name)
        default_name = os.path.splitext(os.path.basename(name))[0]
        return self.parser.parse(data, name=default_name)

    def list_profiles(self) -> list[dict]:
        result = []
        for fname in self.list_profile_files():
            data = self.load_yaml_dict(fname) or {}
            result.append({
                "file": fname,
                "name": data.get("name") or os.path.splitext(fname)[0],
                "domain": data.get("domain"),
            })
        return result
