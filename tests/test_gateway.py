"""
Tests for the boto3 backed snapshot gateway.
"""

import dataclasses
import logging
import threading
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ProfileNotFound

from bulksnap.errors import GatewayError, RunCancelled
from bulksnap.snapshots.gateway import AWSConfig, EC2SnapshotGateway
from bulksnap.snapshots.models import Snapshot
from fakes import client_error

START = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def api_snapshot(snapshot_id, **kw):
    item = {
        "SnapshotId": snapshot_id,
        "StartTime": START,
        "VolumeSize": 8,
        "Encrypted": True,
        "OwnerId": "123456789012",
        "State": "completed",
        "StorageTier": "standard",
        "VolumeId": "vol-1",
        "Description": "nightly",
        "Progress": "100%",
        "Tags": [{"Key": "Name", "Value": "foo"}],
    }
    item.update(kw)
    return item


def make_client(pages):
    client = MagicMock()
    client.get_paginator.return_value.paginate.return_value = iter(pages)
    return client


class TestAWSConfig:
    """Test AWS session settings."""

    @pytest.mark.parametrize("key_id, secret, expected", [
        ("foo", "bar", True),
        ("", "bar", False),
        ("foo", "", False),
        (None, None, False),
    ])
    def test_has_access_keys(self, key_id, secret, expected):
        cfg = AWSConfig(region="us-east-1", access_key_id=key_id, secret_access_key=secret)

        assert cfg.has_access_keys() is expected

    def test_session_kwargs_with_static_credentials(self):
        cfg = AWSConfig(
            region="us-east-1", profile="dev", access_key_id="AKIA",
            secret_access_key="secret", session_token="token",
        )

        assert cfg.session_kwargs() == {
            "region_name": "us-east-1",
            "profile_name": "dev",
            "aws_access_key_id": "AKIA",
            "aws_secret_access_key": "secret",
            "aws_session_token": "token",
        }

    def test_session_kwargs_ignore_partial_credentials(self):
        cfg = AWSConfig(region="us-east-1", access_key_id="AKIA", session_token="token")

        assert cfg.session_kwargs() == {"region_name": "us-east-1"}

    def test_client_config_timeouts(self):
        config = AWSConfig(region="us-east-1", connect_timeout=5, read_timeout=30).client_config()

        assert config.connect_timeout == 5
        assert config.read_timeout == 30


class TestFromConfig:
    """Test gateway construction."""

    @patch("bulksnap.snapshots.gateway.boto3")
    def test_builds_ec2_client(self, mock_boto3):
        cfg = AWSConfig(region="us-east-1", profile="dev", owner_ids=("self", "123"))

        gateway = EC2SnapshotGateway.from_config(cfg)

        mock_boto3.session.Session.assert_called_once_with(region_name="us-east-1", profile_name="dev")
        session = mock_boto3.session.Session.return_value
        assert session.client.call_args[0] == ("ec2",)
        assert gateway.client is session.client.return_value
        assert gateway.owner_ids == ["self", "123"]
        mock_boto3.set_stream_logger.assert_not_called()

    @patch("bulksnap.snapshots.gateway.boto3")
    def test_verbose_enables_botocore_logging(self, mock_boto3, monkeypatch):
        botocore_logger = logging.getLogger("botocore")
        monkeypatch.setattr(botocore_logger, "propagate", True)

        EC2SnapshotGateway.from_config(AWSConfig(region="us-east-1", verbose=True))

        mock_boto3.set_stream_logger.assert_called_once()
        assert mock_boto3.set_stream_logger.call_args[0][0] == "botocore"
        # records go to the stream handler only, not again through the root logger
        assert botocore_logger.propagate is False

    @patch("bulksnap.snapshots.gateway.boto3")
    def test_session_failure_raises_gateway_error(self, mock_boto3):
        mock_boto3.session.Session.side_effect = ProfileNotFound(profile="missing")

        with pytest.raises(GatewayError, match="failed to create aws session"):
            EC2SnapshotGateway.from_config(AWSConfig(region="us-east-1", profile="missing"))


class TestListSnapshots:
    """Test paginated listing."""

    def test_aggregates_every_page(self):
        client = make_client([
            {"Snapshots": [api_snapshot("snap-1"), api_snapshot("snap-2")]},
            {"Snapshots": []},
            {"Snapshots": [api_snapshot("snap-3")]},
        ])
        gateway = EC2SnapshotGateway(client)
        filters = [{"Name": "tag:Name", "Values": ["foo"]}]

        snapshots = gateway.list_snapshots(filters)

        assert [s.snapshot_id for s in snapshots] == ["snap-1", "snap-2", "snap-3"]
        client.get_paginator.assert_called_once_with("describe_snapshots")
        client.get_paginator.return_value.paginate.assert_called_once_with(
            Filters=filters, OwnerIds=["self"]
        )

    def test_no_owner_ids(self):
        client = make_client([])
        EC2SnapshotGateway(client, owner_ids=()).list_snapshots([])

        client.get_paginator.return_value.paginate.assert_called_once_with(Filters=[])

    def test_page_error_propagates(self):
        def pages():
            yield {"Snapshots": [api_snapshot("snap-1")]}
            raise client_error("RequestLimitExceeded", "DescribeSnapshots")

        client = MagicMock()
        client.get_paginator.return_value.paginate.return_value = pages()

        with pytest.raises(Exception, match="RequestLimitExceeded"):
            EC2SnapshotGateway(client).list_snapshots([])

    def test_cancelled_before_listing(self):
        client = make_client([{"Snapshots": [api_snapshot("snap-1")]}])
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(RunCancelled):
            EC2SnapshotGateway(client).list_snapshots([], cancel)

        client.get_paginator.return_value.paginate.assert_not_called()


class TestDeleteSnapshot:
    """Test single snapshot deletion."""

    def test_delete(self):
        client = MagicMock()

        EC2SnapshotGateway(client).delete_snapshot("snap-1")

        client.delete_snapshot.assert_called_once_with(SnapshotId="snap-1")

    def test_delete_error_propagates(self):
        client = MagicMock()
        client.delete_snapshot.side_effect = client_error()

        with pytest.raises(Exception, match="InvalidSnapshot.InUse"):
            EC2SnapshotGateway(client).delete_snapshot("snap-1")

    def test_cancelled_delete(self):
        client = MagicMock()
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(RunCancelled):
            EC2SnapshotGateway(client).delete_snapshot("snap-1", cancel)

        client.delete_snapshot.assert_not_called()


class TestSnapshotModel:
    """Test conversion of DescribeSnapshots items."""

    def test_from_api(self):
        snapshot = Snapshot.from_api(api_snapshot("snap-1", OwnerAlias="amazon"))

        assert snapshot.snapshot_id == "snap-1"
        assert snapshot.start_time == START
        assert snapshot.volume_size == 8
        assert snapshot.encrypted is True
        assert snapshot.owner_alias == "amazon"
        assert snapshot.tags == {"Name": "foo"}

    def test_from_api_minimal(self):
        snapshot = Snapshot.from_api({"SnapshotId": "snap-2", "StartTime": START})

        assert snapshot.tags == {}
        assert snapshot.volume_size is None
        assert snapshot.encrypted is False

    def test_snapshot_is_hashable(self):
        first = Snapshot.from_api(api_snapshot("snap-1"))
        second = Snapshot.from_api(api_snapshot("snap-1"))

        assert first == second
        assert hash(first) == hash(second)
        assert len({first, second}) == 1

    def test_snapshot_tags_are_read_only(self):
        tags = {"Name": "foo"}
        snapshot = Snapshot(snapshot_id="snap-1", start_time=START, tags=tags)
        tags["Name"] = "changed"

        assert snapshot.tags == {"Name": "foo"}
        with pytest.raises(TypeError):
            snapshot.tags["Name"] = "bar"
        with pytest.raises(dataclasses.FrozenInstanceError):
            snapshot.tags = {}
