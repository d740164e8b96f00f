"""Tests for the Temporal worker entrypoint: registration and connection."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from temporalio.contrib.pydantic import pydantic_data_converter

from markcraft.activities import mock_stubs
from markcraft.activities.critic import critic_qa
from markcraft.worker import ACTIVITIES, _load_activities, create_temporal_client, run_worker

EXPECTED_NAMES = {
    "generate_logo_concepts_activity",
    "select_best_concepts_activity",
    "critic_qa",
}


def _names(activities: list) -> set[str]:
    return {getattr(a, "__temporal_activity_definition").name for a in activities}


class TestActivityRegistration:
    def test_three_activities_registered(self) -> None:
        assert len(ACTIVITIES) == 3
        assert _names(ACTIVITIES) == EXPECTED_NAMES

    def test_critic_is_always_real(self) -> None:
        assert critic_qa in ACTIVITIES


class TestLoadActivities:
    def test_mock_branch_loads_stubs(self) -> None:
        with patch("markcraft.worker.settings") as mock_settings:
            mock_settings.use_mock_activities = True
            activities = _load_activities()

        assert _names(activities) == EXPECTED_NAMES
        assert mock_stubs.generate_logo_concepts_activity in activities
        assert mock_stubs.select_best_concepts_activity in activities

    def test_real_branch_loads_real_modules(self) -> None:
        from markcraft.activities import generate, select

        with patch("markcraft.worker.settings") as mock_settings:
            mock_settings.use_mock_activities = False
            activities = _load_activities()

        assert _names(activities) == EXPECTED_NAMES
        modules = {a.__module__ for a in activities}
        assert generate.__name__ in modules
        assert select.__name__ in modules


class TestCreateTemporalClient:
    @pytest.mark.asyncio
    @patch("markcraft.worker.Client")
    async def test_local_connection_no_tls(self, mock_client_cls: MagicMock) -> None:
        mock_client_cls.connect = AsyncMock(return_value=MagicMock())

        with patch("markcraft.worker.settings") as mock_settings:
            mock_settings.temporal_address = "localhost:7233"
            mock_settings.temporal_namespace = "default"
            mock_settings.temporal_api_key = None

            await create_temporal_client()

        mock_client_cls.connect.assert_called_once_with(
            target_host="localhost:7233",
            namespace="default",
            data_converter=pydantic_data_converter,
        )

    @pytest.mark.asyncio
    @patch("markcraft.worker.Client")
    async def test_cloud_connection_with_tls(self, mock_client_cls: MagicMock) -> None:
        mock_client_cls.connect = AsyncMock(return_value=MagicMock())

        with patch("markcraft.worker.settings") as mock_settings:
            mock_settings.temporal_address = "markcraft.tmprl.cloud:7233"
            mock_settings.temporal_namespace = "markcraft"
            mock_settings.temporal_api_key = "secret"

            await create_temporal_client()

        mock_client_cls.connect.assert_called_once_with(
            target_host="markcraft.tmprl.cloud:7233",
            namespace="markcraft",
            tls=True,
            api_key="secret",
            data_converter=pydantic_data_converter,
        )


class TestRunWorker:
    @pytest.mark.asyncio
    @patch("markcraft.worker.Worker")
    @patch("markcraft.worker.create_temporal_client")
    async def test_worker_created_with_activities_only(
        self,
        mock_create_client: AsyncMock,
        mock_worker_cls: MagicMock,
    ) -> None:
        mock_client = MagicMock()
        mock_create_client.return_value = mock_client
        mock_worker = MagicMock()
        mock_worker.run = AsyncMock()
        mock_worker_cls.return_value = mock_worker

        with patch("markcraft.worker.settings") as mock_settings:
            mock_settings.temporal_task_queue = "markcraft-tasks"
            mock_settings.use_mock_activities = False

            await run_worker()

        mock_worker_cls.assert_called_once_with(
            mock_client,
            task_queue="markcraft-tasks",
            activities=ACTIVITIES,
        )
        mock_worker.run.assert_awaited_once()

    @pytest.mark.asyncio
    @patch("markcraft.worker.create_temporal_client")
    async def test_connection_failure_reraises(self, mock_create_client: AsyncMock) -> None:
        mock_create_client.side_effect = ConnectionError("Temporal unreachable")

        with pytest.raises(ConnectionError, match="Temporal unreachable"):
            await run_worker()
