"""Latest revision lookup of a Subversion repository."""

import logging
import subprocess
import xml.etree.ElementTree as ET
from typing import Optional

import httpx

from . import config

logger = logging.getLogger(__name__)

SVN_SCHEMES = {"svn", "svn+ssh", "http", "https", "file"}


class MalformedURLError(ValueError):
    """Repository URL cannot be used with svn."""
    pass


class SVNError(Exception):
    """Repository unreachable, credentials rejected or svn unusable."""
    pass


def parse_repository_url(repo_url: str) -> httpx.URL:
    try:
        url = httpx.URL(repo_url)
    except (httpx.InvalidURL, TypeError) as e:
        raise MalformedURLError(f"Bad SVN URL [{repo_url}]: {e}") from e

    if url.scheme not in SVN_SCHEMES:
        raise MalformedURLError(f"Bad SVN URL [{repo_url}]: unsupported scheme [{url.scheme}]")
    if url.scheme != "file" and not url.host:
        raise MalformedURLError(f"Bad SVN URL [{repo_url}]: missing host")
    return url


def parse_revision(info_xml: str) -> int:
    """HEAD revision from the output of `svn info --xml`."""
    try:
        root = ET.fromstring(info_xml)
    except ET.ParseError as e:
        raise SVNError(f"Unreadable svn info output: {e}") from e

    entry = root.find("entry")
    if entry is None or entry.get("revision") is None:
        raise SVNError("svn info output has no revision")

    try:
        revision = int(entry.get("revision"))
    except ValueError as e:
        raise SVNError(f"Invalid revision [{entry.get('revision')}]") from e

    if revision <= 0:
        raise SVNError(f"Repository has no commits (revision {revision})")
    return revision


class SVNLatestRevisionService:
    """Looks up the latest revision of a repository with the svn client.

    Empty or None credentials mean anonymous access.
    """

    def __init__(
        self,
        repo_url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        self.repository_url = parse_repository_url(repo_url)
        self.username = username or ""
        self.password = password or ""
        self.timeout = timeout if timeout is not None else config.SVN_TIMEOUT

    def get_repository_url(self) -> httpx.URL:
        return self.repository_url

    def _build_command(self) -> list[str]:
        cmd = ["svn", "info", "--xml", "-r", "HEAD", "--non-interactive", "--no-auth-cache"]
        if self.username:
            cmd.extend(["--username", self.username])
        if self.password:
            # password goes through stdin, never argv
            cmd.append("--password-from-stdin")
        cmd.append(str(self.repository_url))
        return cmd

    def get_latest_revision(self) -> int:
        logger.debug(f"Fetching latest revision of {self.repository_url}")
        try:
            completed = subprocess.run(
                self._build_command(),
                input=self.password or None,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=True,
            )
        except FileNotFoundError as e:
            raise SVNError("svn command line client not found") from e
        except subprocess.TimeoutExpired as e:
            raise SVNError(f"Timed out contacting {self.repository_url}") from e
        except subprocess.CalledProcessError as e:
            message = (e.stderr or "").strip() or f"svn exited with {e.returncode}"
            raise SVNError(f"Failed to get latest revision of {self.repository_url}: {message}") from e

        revision = parse_revision(completed.stdout)
        logger.info(f"Latest revision of {self.repository_url} is {revision}")
        return revision
