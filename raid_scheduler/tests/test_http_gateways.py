"""HTTP 게이트웨이 테스트 (httpx.MockTransport)."""

from __future__ import annotations

import json

import httpx
import pytest

from raid_scheduler.application.common.dto import CellSnapshot, ScheduleRecord
from raid_scheduler.application.common.exceptions import (
    BackendRequestError,
    BackendResponseError,
    BackendUnavailableError,
)
from raid_scheduler.domain.entities import (
    Character,
    Raid,
    UserScheduleEntry,
    UserScheduleKey,
)
from raid_scheduler.infrastructure.http import BackendHttpClient, build_http_gateways

BASE_URL = "http://backend.test/api"


class Recorder:
    """요청을 기록하고 경로별 응답을 돌려주는 핸들러."""

    def __init__(self, responses: dict[tuple[str, str], httpx.Response] | None = None) -> None:
        self.requests: list[httpx.Request] = []
        self.responses = responses or {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.raw_path.decode())
        return self.responses.get(key, httpx.Response(200, json={"message": "ok"}))

    def body(self, index: int = -1):
        return json.loads(self.requests[index].content)


def _gateways(recorder: Recorder):
    client = BackendHttpClient(BASE_URL, transport=httpx.MockTransport(recorder))
    return client, build_http_gateways(client)


class TestRaidGateway:
    @pytest.mark.asyncio
    async def test_list_sorted_by_seq(self):
        recorder = Recorder(
            {("GET", "/api/raids"): httpx.Response(200, json=[{"name": "B", "seq": 2}, {"name": "A", "seq": 1}])}
        )
        client, gateways = _gateways(recorder)

        raids = await gateways.raids.list_raids()

        assert raids == [Raid("A", 1), Raid("B", 2)]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_order_and_encoded_names(self):
        recorder = Recorder()
        client, gateways = _gateways(recorder)

        await gateways.raids.update_order([Raid("A", 1), Raid("B", 2)])
        await gateways.raids.update_order_single("베히 모스", 3)
        await gateways.raids.delete_raid("a/b")

        assert recorder.requests[0].method == "PUT"
        assert recorder.body(0) == [{"name": "A", "seq": 1}, {"name": "B", "seq": 2}]
        assert recorder.requests[1].url.raw_path.decode() == "/api/raids/%EB%B2%A0%ED%9E%88%20%EB%AA%A8%EC%8A%A4/order"
        assert recorder.body(1) == {"seq": 3}
        assert recorder.requests[2].url.raw_path.decode() == "/api/raids/a%2Fb"
        await client.aclose()


class TestCharacterGateway:
    @pytest.mark.asyncio
    async def test_list_groups_by_user_and_decodes_flag(self):
        recorder = Recorder(
            {
                ("GET", "/api/characters"): httpx.Response(
                    200,
                    json=[
                        {"name": "a2", "userId": "A", "isSupporter": "Y", "seq": 2},
                        {"name": "b1", "userId": "B", "isSupporter": "N", "seq": 1},
                        {"name": "a1", "userId": "A", "isSupporter": "N", "seq": 1},
                    ],
                )
            }
        )
        client, gateways = _gateways(recorder)

        grouped = await gateways.characters.list_characters()

        assert grouped == {
            "A": [Character("a1", "A", False, 1), Character("a2", "A", True, 2)],
            "B": [Character("b1", "B", False, 1)],
        }
        await client.aclose()

    @pytest.mark.asyncio
    async def test_create_encodes_flag(self):
        recorder = Recorder()
        client, gateways = _gateways(recorder)

        await gateways.characters.create_character(Character("a3", "A", True, 3))

        assert recorder.body() == {"name": "a3", "userId": "A", "isSupporter": "Y", "seq": 3}
        await client.aclose()


class TestScheduleGateway:
    @pytest.mark.asyncio
    async def test_list_records(self):
        recorder = Recorder(
            {
                ("GET", "/api/schedules"): httpx.Response(
                    200,
                    json=[
                        {"id": "P1", "raidName": "R1", "characterName": "a1", "isFinish": "Y"},
                        {"id": "P2", "raidName": "R1", "characterName": None, "isFinish": "N"},
                    ],
                )
            }
        )
        client, gateways = _gateways(recorder)

        records = await gateways.schedules.list_schedules()

        assert records == [
            ScheduleRecord("P1", "R1", "a1", True),
            ScheduleRecord("P2", "R1", None, False),
        ]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_save_all_and_delete_by_cell(self):
        recorder = Recorder()
        client, gateways = _gateways(recorder)

        await gateways.schedules.save_all([CellSnapshot("P1", "R1", ("a1", "b1"), True)])
        await gateways.schedules.delete_by_cell("1파티", "R1")

        assert recorder.body(0) == [
            {"id": "P1", "raidName": "R1", "characterNames": ["a1", "b1"], "isFinish": "Y"}
        ]
        assert recorder.requests[1].method == "DELETE"
        assert recorder.requests[1].url.raw_path.decode() == "/api/schedules/party/1%ED%8C%8C%ED%8B%B0/raid/R1"
        await client.aclose()


class TestUserScheduleGateway:
    @pytest.mark.asyncio
    async def test_list_and_upsert(self):
        recorder = Recorder(
            {
                ("GET", "/api/user-schedules"): httpx.Response(
                    200,
                    json=[
                        {
                            "userId": "A",
                            "dayOfWeek": "월",
                            "weekNumber": 2,
                            "scheduleText": None,
                            "enabled": "N",
                        }
                    ],
                )
            }
        )
        client, gateways = _gateways(recorder)

        entries = await gateways.user_schedules.list_user_schedules()
        await gateways.user_schedules.upsert(UserScheduleKey("A", 1, "화"), UserScheduleEntry("x", True))

        assert entries == {UserScheduleKey("A", 2, "월"): UserScheduleEntry("", False)}
        assert recorder.body() == {
            "userId": "A",
            "dayOfWeek": "화",
            "weekNumber": 1,
            "scheduleText": "x",
            "enabled": "Y",
        }
        await client.aclose()


class TestSystemGateway:
    @pytest.mark.asyncio
    async def test_last_updated(self):
        recorder = Recorder(
            {
                ("GET", "/api/last-updated"): httpx.Response(
                    200, json={"timestamp": "2024-01-01T00:00:00+00:00", "epochMilli": 1704067200000}
                )
            }
        )
        client, gateways = _gateways(recorder)

        assert await gateways.system.get_last_updated() == 1704067200000
        await client.aclose()


class TestErrors:
    """에러 매핑 테스트."""

    @pytest.mark.asyncio
    async def test_error_status_raises_request_error(self):
        recorder = Recorder({("DELETE", "/api/characters/a1"): httpx.Response(404, text="not found")})
        client, gateways = _gateways(recorder)

        with pytest.raises(BackendRequestError) as exc_info:
            await gateways.characters.delete_character("a1")

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "HTTP Error: 404 - not found"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_transport_error_raises_unavailable(self):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = BackendHttpClient(BASE_URL, transport=httpx.MockTransport(refuse))
        gateways = build_http_gateways(client)

        with pytest.raises(BackendUnavailableError):
            await gateways.users.list_users()
        await client.aclose()

    @pytest.mark.asyncio
    async def test_text_body_on_mutation_is_accepted(self):
        """본문을 쓰지 않는 변경 요청은 텍스트 응답도 허용."""
        recorder = Recorder(
            {("POST", "/api/user-schedules/advance-week"): httpx.Response(200, text="주차 전환이 완료되었습니다.")}
        )
        client, gateways = _gateways(recorder)

        await gateways.user_schedules.advance_week()

        assert recorder.requests[0].method == "POST"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_non_json_body_on_read_raises_response_error(self):
        recorder = Recorder({("GET", "/api/users"): httpx.Response(200, text="<html>maintenance</html>")})
        client, gateways = _gateways(recorder)

        with pytest.raises(BackendResponseError):
            await gateways.users.list_users()
        await client.aclose()

    @pytest.mark.asyncio
    async def test_object_instead_of_list_raises_response_error(self):
        recorder = Recorder({("GET", "/api/raids"): httpx.Response(200, json={"message": "ok"})})
        client, gateways = _gateways(recorder)

        with pytest.raises(BackendResponseError):
            await gateways.raids.list_raids()
        await client.aclose()

    @pytest.mark.asyncio
    async def test_missing_field_raises_response_error(self):
        """필드가 빠진 2xx 응답은 검증 에러 대신 애플리케이션 에러로 변환."""
        recorder = Recorder({("GET", "/api/raids"): httpx.Response(200, json=[{"seq": 1}])})
        client, gateways = _gateways(recorder)

        with pytest.raises(BackendResponseError) as exc_info:
            await gateways.raids.list_raids()

        assert "/raids" in exc_info.value.message
        await client.aclose()
