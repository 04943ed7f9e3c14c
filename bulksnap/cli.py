"""
Click CLI for bulk deleting EBS snapshots.
"""

import logging
import sys
from contextlib import ExitStack
from typing import List, Optional, Set

import click
from botocore.exceptions import BotoCoreError, ClientError

from . import __version__, report
from .errors import ApplyCancelled, BulkDeleteError
from .snapshots import BulkDelete, BulkDeleteConfig, FailedSnapshot, Options, Snapshot
from .snapshots.gateway import DEFAULT_OWNER_IDS

APP_NAME = "aws-snapshot-bulk-delete"
DESCRIPTION = "Bulk delete AWS EBS snapshot with tags and expiration date."

logger = logging.getLogger(__name__)


def to_env_var_case(prefix: str, name: str) -> str:
    """
    Convert a flag name to an environment variable name.

    eg. ("aws", "foo-bar-baz") -> "AWS_FOO_BAR_BAZ"
    """
    if prefix:
        name = f"{prefix}_{name}"
    return name.upper().replace("-", "_")


def confirm_message() -> str:
    return (
        "Do you want to perform these actions?\n"
        f"{APP_NAME} will perform the actions described above.\n"
        "Only 'y' or 'yes' will be accepted to approve.\n"
    )


class ConsoleHooks:
    """Lifecycle hooks that render the run to the terminal."""

    def __init__(self, plan: bool, properties: Set[str], tag_keys: Set[str],
                 auto_approve: bool = False):
        self.plan = plan
        self.properties = properties
        self.tag_keys = tag_keys
        self.auto_approve = auto_approve
        self._stack = ExitStack()
        self._bar = None

    def options(self) -> Options:
        return Options(
            after_list=self.after_list,
            before_delete=self.before_delete,
            on_deleted=self.on_deleted,
            after_delete=self.after_delete,
        )

    def after_list(self, snapshots: List[Snapshot]) -> None:
        click.echo(report.format_deletion_plan(snapshots, self.properties, self.tag_keys))
        if self.plan or self.auto_approve:
            return
        click.echo(confirm_message())
        if not click.confirm("Enter a value", default=False):
            raise ApplyCancelled("\nApply cancelled.")

    def before_delete(self, snapshots: List[Snapshot]) -> None:
        self._bar = self._stack.enter_context(
            click.progressbar(length=len(snapshots), label="Deleting snapshots")
        )

    def on_deleted(self, snapshot: Snapshot) -> None:
        self._bar.update(1)

    def after_delete(self, successful: List[Snapshot], failed: List[FailedSnapshot]) -> None:
        self.close()
        click.echo(report.format_deletion_result(successful, failed, self.properties, self.tag_keys))

    def close(self) -> None:
        self._stack.close()
        self._bar = None


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@click.command(name=APP_NAME, help=DESCRIPTION)
@click.option("--region", required=True, envvar=to_env_var_case("AWS", "region"), help="AWS region")
@click.option("--profile", envvar=to_env_var_case("AWS", "profile"), help="AWS profile")
@click.option("--access-key-id", envvar=to_env_var_case("AWS", "access-key-id"), help="AWS access key id")
@click.option("--secret-access-key", envvar=to_env_var_case("AWS", "secret-access-key"),
              help="AWS secret access key")
@click.option("--session-token", envvar=to_env_var_case("AWS", "session-token"), help="AWS session token")
@click.option("--verbose", is_flag=True, help="verbose mode (enable connection debugging)")
@click.option("--plan", is_flag=True,
              help="don't make any changes; instead, try to predict some of the changes that may occur")
@click.option("--age", type=click.IntRange(min=0), default=0, help="snapshot retention period (days)")
@click.option("--tags", "tags", multiple=True, help='snapshot tags (eg. Name=foo OR Name="foo,bar,baz")')
@click.option("--show-properties", multiple=True,
              help="show properties in stdout (properties: Description, Encrypted, OwnerAlias, OwnerId, "
                   "Progress, SnapshotId, StartTime, State, StorageTier, VolumeId, VolumeSize, Tags)")
@click.option("--show-tags", multiple=True, help="show tags in stdout")
@click.option("--owner-id", "owner_ids", multiple=True, default=DEFAULT_OWNER_IDS, show_default=True,
              help="snapshot owners to list (repeatable)")
@click.option("--yes", is_flag=True, help="Auto-approve the deletion plan without prompting")
@click.version_option(__version__)
def main(region: str, profile: Optional[str], access_key_id: Optional[str],
         secret_access_key: Optional[str], session_token: Optional[str], verbose: bool,
         plan: bool, age: int, tags: tuple, show_properties: tuple, show_tags: tuple,
         owner_ids: tuple, yes: bool):
    _configure_logging(verbose)

    config = BulkDeleteConfig(
        region=region,
        profile=profile,
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        session_token=session_token,
        verbose=verbose,
        plan=plan,
        age=age,
        tags=tuple(tags),
        owner_ids=tuple(owner_ids),
    )
    hooks = ConsoleHooks(plan, report.show_properties(show_properties),
                         report.show_tags(show_tags), auto_approve=yes)

    try:
        bulk_delete = BulkDelete(config)
        bulk_delete.run_with_options(hooks.options())
    except (BulkDeleteError, ClientError, BotoCoreError) as e:
        logger.debug(f"Run aborted: {e!r}")
        click.echo(str(e), err=True)
        sys.exit(1)
    finally:
        hooks.close()
