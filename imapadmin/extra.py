from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Final, Optional

from .exceptions import ProtocolError
from .interfaces.protocol import ProtocolInterface
from .mailbox import MailboxRecord, QuotaInfo

__all__ = ['PendingExtra', 'ExtraAttributeStore']

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingExtra:
    """Extra attributes fetched for a record but not yet attached to it."""

    record: MailboxRecord
    rights: Optional[str] = None
    quota: Optional[QuotaInfo] = None

    def apply(self) -> None:
        extra = self.record.get_extra()
        if self.rights is not None:
            extra.rights = self.rights
        if self.quota is not None:
            extra.quota = self.quota


class ExtraAttributeStore:
    """Attaches the ACL rights and quota of mailboxes to their records. Each
    attribute is fetched at most once per record, after which it lives as
    long as the snapshot that owns the record.

    Args:
        protocol: The protocol collaborator.
        rights_enabled: False if the server does not support ``ACL``.
        quota_enabled: False if the server does not support ``QUOTA``.

    """

    def __init__(self, protocol: ProtocolInterface, *,
                 rights_enabled: bool = True,
                 quota_enabled: bool = True) -> None:
        super().__init__()
        self.protocol: Final = protocol
        self.rights_enabled: Final = rights_enabled
        self.quota_enabled: Final = quota_enabled

    def _fetch_quota(self, name: str) -> QuotaInfo:
        quota = self.protocol.fetch_quota(name)
        return quota if quota is not None else QuotaInfo.none()

    def get_rights(self, record: MailboxRecord) -> Optional[str]:
        """Return the rights of the login user on the mailbox, fetching them
        on first use.

        Args:
            record: The mailbox record.

        Returns:
            The rights, or None if unsupported or the lookup failed.

        """
        if not self.rights_enabled:
            return None
        extra = record.get_extra()
        if extra.rights is None:
            try:
                extra.rights = self.protocol.fetch_rights(record.name)
            except ProtocolError as exc:
                _log.warning('rights of %r not available: %s',
                             record.name, exc)
        return extra.rights

    def get_quota(self, record: MailboxRecord) -> Optional[QuotaInfo]:
        """Return the quota of the mailbox, fetching it on first use.

        Args:
            record: The mailbox record.

        Returns:
            The quota, or None if unsupported or the lookup failed.

        """
        if not self.quota_enabled:
            return None
        extra = record.get_extra()
        if extra.quota is None:
            try:
                extra.quota = self._fetch_quota(record.name)
            except ProtocolError as exc:
                _log.warning('quota of %r not available: %s',
                             record.name, exc)
        return extra.quota

    def fetch(self, records: Iterable[MailboxRecord], *,
              rights: bool, quota: bool) -> Sequence[PendingExtra]:
        """Fetch the missing attributes of all the records without attaching
        them. Records that already carry an attribute and records that cannot
        be selected are skipped.

        Args:
            records: The mailbox records.
            rights: Fetch the rights.
            quota: Fetch the quota.

        Raises:
            :exc:`~imapadmin.exceptions.ProtocolError`

        """
        rights = rights and self.rights_enabled
        quota = quota and self.quota_enabled
        pending: list[PendingExtra] = []
        for record in records:
            if not record.selectable:
                continue
            extra = record.extra
            new_rights: Optional[str] = None
            new_quota: Optional[QuotaInfo] = None
            if rights and (extra is None or extra.rights is None):
                new_rights = self.protocol.fetch_rights(record.name)
            if quota and (extra is None or extra.quota is None):
                new_quota = self._fetch_quota(record.name)
            if new_rights is not None or new_quota is not None:
                pending.append(PendingExtra(record, new_rights, new_quota))
        _log.debug('fetched extra attributes of %d mailboxes', len(pending))
        return pending

    def forget(self, records: Iterable[MailboxRecord], *,
               rights: bool, quota: bool) -> int:
        """Drop the attributes of all the records, so the next lookup fetches
        them again.

        Args:
            records: The mailbox records.
            rights: Drop the rights.
            quota: Drop the quota.

        Returns:
            The number of records that were changed.

        """
        changed = 0
        for record in records:
            extra = record.extra
            if extra is None:
                continue
            before = (extra.rights, extra.quota)
            if rights:
                extra.rights = None
            if quota:
                extra.quota = None
            if (extra.rights, extra.quota) != before:
                changed += 1
        _log.debug('dropped extra attributes of %d mailboxes', changed)
        return changed
