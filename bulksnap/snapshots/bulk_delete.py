"""
Bulk delete engine: list, filter, order and delete EBS snapshots.
"""

import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from ..clock import Clock, utc_now
from ..errors import ConfigurationError, RunCancelled
from ..tags import parse_tags, tag_filters
from .filters import select_snapshots
from .gateway import DEFAULT_OWNER_IDS, AWSConfig, EC2SnapshotGateway, SnapshotGateway
from .models import DeletionResult, FailedSnapshot, Snapshot


@dataclass(frozen=True)
class BulkDeleteConfig:
    """Validated inputs for one bulk delete invocation."""
    region: str
    profile: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    session_token: Optional[str] = None
    verbose: bool = False
    plan: bool = False
    age: int = 0                # retention period in days, 0 disables
    tags: Tuple[str, ...] = ()  # raw "key=value" strings
    owner_ids: Tuple[str, ...] = DEFAULT_OWNER_IDS

    def has_age_or_tags(self) -> bool:
        return self.age > 0 or len(self.tags) > 0

    def aws_config(self) -> AWSConfig:
        return AWSConfig(
            region=self.region,
            profile=self.profile,
            access_key_id=self.access_key_id,
            secret_access_key=self.secret_access_key,
            session_token=self.session_token,
            verbose=self.verbose,
            owner_ids=tuple(self.owner_ids),
        )


@dataclass
class Options:
    """
    Lifecycle hooks invoked during a run.

    Every hook is optional. A hook that raises aborts the run and the
    exception propagates to the caller.
    """
    before_list: Optional[Callable[[], None]] = None
    after_list: Optional[Callable[[List[Snapshot]], None]] = None
    before_delete: Optional[Callable[[List[Snapshot]], None]] = None
    on_deleted: Optional[Callable[[Snapshot], None]] = None
    after_delete: Optional[Callable[[List[Snapshot], List[FailedSnapshot]], None]] = None


class BulkDelete:
    """Deletes the snapshots selected by age and tag filters."""

    def __init__(self, config: BulkDeleteConfig,
                 gateway: Optional[SnapshotGateway] = None,
                 clock: Optional[Clock] = None):
        """
        Validate the configuration and prepare the gateway.

        Args:
            config: Run configuration
            gateway: Gateway to use instead of building an EC2 one
            clock: Source of the current instant (defaults to UTC wall clock)

        Raises:
            ConfigurationError: If neither age nor tags are set, or age is negative
            InvalidTagError: If a raw tag string is malformed
            GatewayError: If the AWS session cannot be created
        """
        if config.age < 0:
            raise ConfigurationError(f"age must not be negative: {config.age}")
        if not config.has_age_or_tags():
            raise ConfigurationError("both age and tags not specified")

        self.age = config.age
        self.tags = parse_tags(config.tags)
        self.plan = config.plan
        self.clock = clock or utc_now
        if gateway is None:
            gateway = EC2SnapshotGateway.from_config(config.aws_config())
        self.gateway = gateway

    def run(self, cancel: Optional[threading.Event] = None) -> Optional[DeletionResult]:
        return self.run_with_options(Options(), cancel)

    def run_with_options(self, opts: Options,
                         cancel: Optional[threading.Event] = None) -> Optional[DeletionResult]:
        """
        Run the list, filter, sort and delete pipeline.

        Args:
            opts: Lifecycle hooks
            cancel: Optional cancellation token passed to every gateway call

        Returns:
            Deletion outcome, or None in plan mode
        """
        now = self.clock()

        if opts.before_list:
            opts.before_list()

        snapshots = self.list_snapshots(now, cancel)

        if opts.after_list:
            opts.after_list(snapshots)

        if self.plan:
            return None

        if opts.before_delete:
            opts.before_delete(snapshots)

        result = self.delete_snapshots(snapshots, opts.on_deleted, cancel)

        if opts.after_delete:
            opts.after_delete(result.successful, result.failed)

        return result

    def list_snapshots(self, now, cancel=None) -> List[Snapshot]:
        listed = self.gateway.list_snapshots(tag_filters(self.tags), cancel)
        return select_snapshots(listed, self.tags, self.age, now)

    def delete_snapshots(self, snapshots: List[Snapshot],
                         on_deleted: Optional[Callable[[Snapshot], None]] = None,
                         cancel: Optional[threading.Event] = None) -> DeletionResult:
        """
        Delete snapshots one at a time.

        A failed delete is recorded and the loop moves on. An exception from
        ``on_deleted`` stops the loop after the snapshot was recorded as
        deleted.
        """
        result = DeletionResult()
        for snapshot in snapshots:
            try:
                self.gateway.delete_snapshot(snapshot.snapshot_id, cancel)
            except RunCancelled:
                raise
            except Exception as e:
                result.failed.append(FailedSnapshot(snapshot=snapshot, error=e))
                continue
            result.successful.append(snapshot)
            if on_deleted:
                on_deleted(snapshot)
        return result
