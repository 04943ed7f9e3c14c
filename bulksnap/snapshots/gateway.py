"""
EC2 gateway used to list and delete snapshots.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import GatewayError, RunCancelled
from .models import Snapshot

logger = logging.getLogger(__name__)

DEFAULT_OWNER_IDS = ("self",)


@dataclass(frozen=True)
class AWSConfig:
    """Settings used to build the boto3 session and EC2 client."""
    region: str
    profile: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    session_token: Optional[str] = None
    verbose: bool = False
    owner_ids: tuple = DEFAULT_OWNER_IDS
    connect_timeout: int = 10
    read_timeout: int = 60

    def has_access_keys(self) -> bool:
        return bool(self.access_key_id) and bool(self.secret_access_key)

    def session_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for ``boto3.session.Session``."""
        kwargs = {"region_name": self.region}
        if self.profile:
            kwargs["profile_name"] = self.profile
        if self.has_access_keys():
            kwargs["aws_access_key_id"] = self.access_key_id
            kwargs["aws_secret_access_key"] = self.secret_access_key
            if self.session_token:
                kwargs["aws_session_token"] = self.session_token
        return kwargs

    def client_config(self) -> Config:
        return Config(
            connect_timeout=self.connect_timeout,
            read_timeout=self.read_timeout,
        )


def _check_cancelled(cancel: Optional[threading.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise RunCancelled("run cancelled")


class SnapshotGateway(ABC):
    """Narrow snapshot API the bulk delete engine depends on."""

    @abstractmethod
    def list_snapshots(self, filters: List[Dict[str, Any]],
                       cancel: Optional[threading.Event] = None) -> List[Snapshot]:
        """
        List every snapshot matching ``filters`` across all pages.

        Args:
            filters: DescribeSnapshots filters
            cancel: Optional cancellation token

        Returns:
            Snapshots in listing order
        """
        pass

    @abstractmethod
    def delete_snapshot(self, snapshot_id: str,
                        cancel: Optional[threading.Event] = None) -> None:
        """Delete one snapshot, raising on failure."""
        pass


class EC2SnapshotGateway(SnapshotGateway):
    """SnapshotGateway backed by a boto3 EC2 client."""

    def __init__(self, client, owner_ids=DEFAULT_OWNER_IDS):
        self.client = client
        self.owner_ids = list(owner_ids)

    @classmethod
    def from_config(cls, cfg: AWSConfig) -> "EC2SnapshotGateway":
        """
        Create a gateway from AWS settings.

        Raises:
            GatewayError: If the session or client cannot be created
        """
        if cfg.verbose:
            boto3.set_stream_logger("botocore", logging.DEBUG)
            # set_stream_logger adds its own handler; keep records off the root handler
            logging.getLogger("botocore").propagate = False
        try:
            session = boto3.session.Session(**cfg.session_kwargs())
            client = session.client("ec2", config=cfg.client_config())
        except (BotoCoreError, ClientError) as e:
            raise GatewayError(f"failed to create aws session: {e}") from e
        return cls(client, owner_ids=cfg.owner_ids)

    def list_snapshots(self, filters, cancel=None):
        snapshots = []
        paginator = self.client.get_paginator("describe_snapshots")

        kwargs = {"Filters": filters}
        if self.owner_ids:
            kwargs["OwnerIds"] = self.owner_ids

        _check_cancelled(cancel)
        for page_number, page in enumerate(paginator.paginate(**kwargs), start=1):
            _check_cancelled(cancel)
            items = page.get("Snapshots", [])
            logger.debug(f"DescribeSnapshots page {page_number}: {len(items)} snapshots")
            snapshots.extend(Snapshot.from_api(item) for item in items)

        return snapshots

    def delete_snapshot(self, snapshot_id, cancel=None):
        _check_cancelled(cancel)
        logger.debug(f"Deleting snapshot {snapshot_id}")
        self.client.delete_snapshot(SnapshotId=snapshot_id)
