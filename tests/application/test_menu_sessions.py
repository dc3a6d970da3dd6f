"""Testes do motor com sessão configurada (AT e Hubtel)."""

from __future__ import annotations

import pytest

from ussd_menu import ConfigurationError, SessionBackendError, UssdMenu
from ussd_menu.infra.session_store_memory import InMemorySessionBackend

SESSION_ARGS = {"serviceCode": "*111#", "phoneNumber": "123456", "sessionId": "324errw44we"}


def _build_name_menu(menu: UssdMenu, use_callbacks: bool) -> None:
    if use_callbacks:

        def start(state):
            def saved(err):
                state.con("Next")

            state.session.set("name", "Habbes", saved)

        def state1(state):
            state.session.get("name", lambda err, val: state.end(val))

    else:

        async def start(state):
            await menu.session.set("name", "Habbes")
            state.con("Next")

        async def state1(state):
            state.end(await menu.session.get("name"))

    menu.start_state(run=start, next={"1": "state1"})
    menu.state("state1", run=state1)


class TestSessionLifecycle:
    @pytest.mark.parametrize("config_kind", ["callback_config", "async_config"])
    @pytest.mark.parametrize("use_callbacks", [False, True])
    @pytest.mark.asyncio
    async def test_manages_session(self, dict_store, config_kind, use_callbacks):
        menu = UssdMenu()
        menu.session_config(getattr(dict_store, config_kind)())
        _build_name_menu(menu, use_callbacks)

        first = await menu.run({**SESSION_ARGS, "text": ""})

        assert first == "CON Next"
        assert dict_store.sessions[SESSION_ARGS["sessionId"]] == {"name": "Habbes"}

        second = await menu.run({**SESSION_ARGS, "text": "1"})

        assert second == "END Habbes"
        assert SESSION_ARGS["sessionId"] not in dict_store.sessions

    @pytest.mark.asyncio
    async def test_con_keeps_session_alive(self):
        backend = InMemorySessionBackend()
        menu = UssdMenu().session_config(backend)
        menu.start_state(run=lambda s: s.con("Next"))

        await menu.run({**SESSION_ARGS, "text": ""})

        assert backend.snapshot(SESSION_ARGS["sessionId"]) == {}

    @pytest.mark.asyncio
    async def test_session_id_required(self, dict_store):
        errors = []
        menu = UssdMenu().session_config(dict_store.async_config())
        menu.on_error(errors.append)
        menu.start_state(run=lambda s: s.con("Next"))

        assert await menu.run({"text": ""}) is None
        assert isinstance(errors[0], ConfigurationError)


class TestSessionErrors:
    @pytest.mark.parametrize(
        "start",
        [
            lambda sid, cb: cb(ValueError("start error")),
            lambda sid: _raise(ValueError("start error")),
        ],
        ids=["callback", "raises"],
    )
    @pytest.mark.asyncio
    async def test_start_error_is_emitted_and_handler_not_run(self, start, gateway_args):
        errors = []
        ran = []
        menu = UssdMenu().session_config({"start": start})
        menu.on_error(errors.append)
        menu.start_state(run=lambda s: ran.append(s))

        assert await menu.run(gateway_args) is None
        assert [e.message for e in errors] == ["start error"]
        assert ran == []

    @pytest.mark.asyncio
    async def test_rejected_start_is_emitted(self, gateway_args):
        async def start(sid):
            raise ValueError("start error")

        errors = []
        menu = UssdMenu().session_config({"start": start})
        menu.on_error(errors.append)
        menu.start_state(run=lambda s: s.con("x"))

        assert await menu.run(gateway_args) is None
        assert len(errors) == 1
        assert isinstance(errors[0], SessionBackendError)

    @pytest.mark.asyncio
    async def test_set_error_in_handler_is_emitted_once(self, gateway_args):
        errors = []

        async def set_(sid, key, value):
            raise ValueError("set error")

        async def start_state(state):
            await state.session.set("name", "x")
            state.con("unreachable")

        menu = UssdMenu().session_config({"start": lambda sid, cb: cb(), "set": set_})
        menu.on_error(errors.append)
        menu.start_state(run=start_state)

        assert await menu.run(gateway_args) is None
        assert [e.message for e in errors] == ["set error"]

    @pytest.mark.asyncio
    async def test_get_error_reaches_handler_callback(self, gateway_args):
        errors = []

        def get(sid, key, cb):
            cb(ValueError("get error"))

        def start_state(state):
            state.session.get("name", lambda err, val: state.end(str(err)))

        menu = UssdMenu().session_config(
            {"start": lambda sid, cb: cb(), "get": get, "end": lambda sid, cb: cb()}
        )
        menu.on_error(errors.append)
        menu.start_state(run=start_state)

        assert await menu.run(gateway_args) == "END get error"
        assert [e.message for e in errors] == ["get error"]

    @pytest.mark.parametrize(
        "end",
        [
            lambda sid, cb: cb(ValueError("end error")),
            lambda sid: _failing_future(ValueError("end error")),
        ],
        ids=["callback", "rejected"],
    )
    @pytest.mark.asyncio
    async def test_end_error_is_emitted_after_response(self, end, gateway_args):
        errors = []
        menu = UssdMenu().session_config({"start": lambda sid, cb: cb(), "end": end})
        menu.on_error(errors.append)
        menu.start_state(run=lambda s: s.end("bye"))

        assert await menu.run(gateway_args) == "END bye"
        assert [e.message for e in errors] == ["end error"]


def _raise(exc: BaseException):
    raise exc


async def _failing_future(exc: BaseException):
    raise exc


HUBTEL_ARGS = {
    "Mobile": "233208183783",
    "SessionId": "bd7bc392496b4b28af2033ba83f5e400",
    "ServiceCode": "713*4",
    "Type": "Response",
    "Message": "",
    "Operator": "MTN",
    "Sequence": 2,
}


class TestHubtel:
    @pytest.fixture()
    def menu(self) -> UssdMenu:
        return UssdMenu(provider="hubtel")

    @pytest.mark.asyncio
    async def test_requires_session_config(self, menu):
        errors = []
        menu.on_error(errors.append)
        menu.start_state(run=lambda s: s.con("Next"))

        assert await menu.run(HUBTEL_ARGS) is None
        assert isinstance(errors[0], ConfigurationError)
        assert errors[0].message == "Session config required for Hubtel provider"

    @pytest.mark.asyncio
    async def test_route_persist_failure_is_emitted(self, menu, dict_store):
        errors = []

        async def set_(sid, key, value):
            if key == "route":
                raise RuntimeError("Cannot set route key")

        menu.session_config({"start": lambda sid, cb: cb(), "set": set_})
        menu.on_error(errors.append)
        menu.start_state(run=lambda s: s.con("Next"), next={"1": "state1"})

        result = await menu.run({**HUBTEL_ARGS, "Type": "Initiation", "Message": "1"})

        assert result is None
        assert [e.message for e in errors] == ["Cannot set route key"]

    @pytest.mark.asyncio
    async def test_maps_request_to_args(self, menu, dict_store):
        seen = {}

        def state1(state):
            seen.update(
                phone=state.args.phone_number,
                session_id=state.args.session_id,
                service_code=state.args.service_code,
                text=state.args.text,
                val=state.val,
                menu_val=menu.val,
            )
            state.con("ok")

        menu.session_config(dict_store.async_config())
        menu.start_state(next={"1": "state1"})
        menu.state("state1", run=state1)

        await menu.run({**HUBTEL_ARGS, "Message": "1"})

        assert seen == {
            "phone": "+233208183783",
            "session_id": HUBTEL_ARGS["SessionId"],
            "service_code": "713*4",
            "text": "1",
            "val": "1",
            "menu_val": "1",
        }

    @pytest.mark.asyncio
    async def test_initiation_message_is_not_resolved(self, menu, dict_store):
        seen = {}

        def start(state):
            seen.update(val=menu.val, text=state.args.text)
            state.con("Welcome")

        menu.session_config(dict_store.async_config())
        menu.start_state(run=start, next={"1": "state1"})

        result = await menu.run(
            {**HUBTEL_ARGS, "Sequence": 1, "Message": "*713*4#", "Type": "Initiation"}
        )

        assert result == {"Message": "Welcome", "Type": "Response"}
        assert seen == {"val": "", "text": ""}

    @pytest.mark.asyncio
    async def test_con_and_end_responses(self, menu, dict_store):
        menu.session_config(dict_store.async_config())
        menu.start_state(run=lambda s: s.end("End"))

        assert await menu.run(HUBTEL_ARGS) == {"Message": "End", "Type": "Release"}

    @pytest.mark.asyncio
    async def test_first_text_becomes_route(self, menu, dict_store):
        menu.session_config(dict_store.async_config())
        menu.start_state(run=lambda s: s.con("Next"), next={"1": "state1"})
        menu.state("state1", run=lambda s: s.con("state1 response"))
        session_id = HUBTEL_ARGS["SessionId"]

        await menu.run(HUBTEL_ARGS)
        assert dict_store.sessions[session_id]["route"] == ""

        result = await menu.run({**HUBTEL_ARGS, "Message": "1"})

        assert result["Message"] == "state1 response"
        assert dict_store.sessions[session_id]["route"] == "1"

    @pytest.mark.asyncio
    async def test_route_accumulates_across_sequences(self, menu, dict_store):
        routes: list[str] = []

        async def state2(state):
            # a sessão é removida no end; a rota é lida antes
            routes.append(await state.session.get("route"))
            state.end("state2 response")

        menu.session_config(dict_store.callback_config())
        menu.start_state(run=lambda s: s.con("Next"), next={"1": "state1"})
        menu.state("state1", run=lambda s: s.con("state1 response"), next={"3": "state2"})
        menu.state("state2", run=state2)
        session_id = HUBTEL_ARGS["SessionId"]

        init = await menu.run(
            {**HUBTEL_ARGS, "Sequence": 1, "Message": "*713*4#", "Type": "Initiation"}
        )
        assert init == {"Message": "Next", "Type": "Response"}
        assert dict_store.sessions[session_id]["route"] == ""

        first = await menu.run({**HUBTEL_ARGS, "Sequence": 2, "Message": "1"})
        assert first == {"Message": "state1 response", "Type": "Response"}

        second = await menu.run({**HUBTEL_ARGS, "Sequence": 3, "Message": "3"})

        assert second == {"Message": "state2 response", "Type": "Release"}
        assert routes == ["1*3"]
        assert session_id not in dict_store.sessions


class TestFragmentEquivalence:
    @pytest.mark.parametrize("fragments", [["1", "4"], ["1", "James"], ["1", "invalid"], ["2"]])
    @pytest.mark.asyncio
    async def test_fragments_resolve_like_joined_route(self, fragments):
        def build(menu: UssdMenu) -> UssdMenu:
            menu.start_state(run=lambda s: s.con(f"start:{s.val}"), next={"1": "state1", "2": "state2"})
            menu.state(
                "state1",
                run=lambda s: s.con(f"state1:{s.val}"),
                next={"4": "state1.4", "*^[A-Z]\\w+$": "state1.name"},
                default_next="state1.default",
            )
            menu.state("state1.4", run=lambda s: s.con(f"state1.4:{s.val}"))
            menu.state("state1.name", run=lambda s: s.con(f"state1.name:{s.val}"))
            menu.state("state1.default", run=lambda s: s.con(f"state1.default:{s.val}"))
            menu.state("state2", run=lambda s: s.con(f"state2:{s.val}"))
            return menu

        direct = build(UssdMenu())
        expected = await direct.run({**SESSION_ARGS, "text": "*".join(fragments)})

        hubtel = build(UssdMenu(provider="hubtel")).session_config(InMemorySessionBackend())
        base = {**HUBTEL_ARGS, "SessionId": "frag-session"}
        await hubtel.run({**base, "Type": "Initiation", "Message": "*713*4#"})
        result = None
        for fragment in fragments:
            result = await hubtel.run({**base, "Message": fragment})

        assert result["Message"] == expected.removeprefix("CON ")
