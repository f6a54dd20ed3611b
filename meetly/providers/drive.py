"""Folder provider: Google Drive folders shared with buyers.

Lookup is by exact folder name in the creator's drive, so two packages
naming the same path share one folder.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from meetly.providers.base import DelegationError, Folder, ProviderError
from meetly.providers.google_auth import DRIVE_SCOPE, GoogleCredentials


FILES_URL = "https://www.googleapis.com/drive/v3/files"
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"

_PROVIDER = "drive"


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


class GoogleDriveClient:
    """Satisfies FolderProvider against the creator's Google Drive."""

    def __init__(self, credentials: GoogleCredentials) -> None:
        self._creds = credentials

    async def _call(self, user_id: UUID, method: str, url: str, **kwargs: Any):
        return await self._creds.request(
            user_id, DRIVE_SCOPE, method, url, provider=_PROVIDER, **kwargs
        )

    async def find_or_create_folder(self, user_id: UUID, name: str) -> Folder:
        # Search then create is not atomic; concurrent saves may create twins.
        resp = await self._call(
            user_id,
            "GET",
            FILES_URL,
            params={
                "q": (
                    f"name='{_quote(name)}' and mimeType='{FOLDER_MIME_TYPE}' "
                    "and trashed=false"
                ),
                "fields": "files(id, name)",
                "spaces": "drive",
            },
        )
        files = resp.json().get("files") or []
        if files:
            return Folder(folder_id=files[0]["id"], folder_name=files[0].get("name", name))

        resp = await self._call(
            user_id,
            "POST",
            FILES_URL,
            params={"fields": "id, name"},
            json={"name": name, "mimeType": FOLDER_MIME_TYPE},
        )
        body = resp.json()
        if not body.get("id"):
            raise ProviderError(_PROVIDER, "create returned no folder id")
        return Folder(folder_id=body["id"], folder_name=body.get("name", name))

    async def share_folder(
        self, user_id: UUID, folder_id: str, email: str, role: str = "reader"
    ) -> None:
        await self._call(
            user_id,
            "POST",
            f"{FILES_URL}/{folder_id}/permissions",
            params={"sendNotificationEmail": "true"},
            json={"type": "user", "role": role, "emailAddress": email},
        )


class InMemoryDriveProvider:
    """Dict-backed FolderProvider; same failure hooks as the calendar fake.

    The target is the folder name for find_or_create_folder and the email
    for share_folder.
    """

    def __init__(self) -> None:
        self.folders: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, str]] = []
        self._failing: set[tuple[str, str | None]] = set()
        self._unlinked: set[UUID] = set()
        self._seq = 0

    def fail(self, operation: str, target: str | None = None) -> None:
        self._failing.add((operation, target))

    def unlink(self, user_id: UUID) -> None:
        self._unlinked.add(user_id)

    def reset(self) -> None:
        self.folders.clear()
        self.calls.clear()
        self._failing.clear()
        self._unlinked.clear()
        self._seq = 0

    def _check(self, operation: str, user_id: UUID, target: str) -> None:
        self.calls.append((operation, target))
        if user_id in self._unlinked:
            raise DelegationError(_PROVIDER, "no Google account linked")
        if (operation, None) in self._failing or (operation, target) in self._failing:
            raise ProviderError(_PROVIDER, f"{operation} failed for {target}")

    async def find_or_create_folder(self, user_id: UUID, name: str) -> Folder:
        self._check("find_or_create_folder", user_id, name)
        for folder_id, folder in self.folders.items():
            if folder["owner"] == user_id and folder["name"] == name:
                return Folder(folder_id=folder_id, folder_name=name)
        self._seq += 1
        folder_id = f"folder-{self._seq}"
        self.folders[folder_id] = {"owner": user_id, "name": name, "readers": {}}
        return Folder(folder_id=folder_id, folder_name=name)

    async def share_folder(
        self, user_id: UUID, folder_id: str, email: str, role: str = "reader"
    ) -> None:
        self._check("share_folder", user_id, email)
        folder = self.folders.get(folder_id)
        if folder is None:
            raise ProviderError(_PROVIDER, f"{folder_id} not found", status_code=404)
        folder["readers"][email] = role
