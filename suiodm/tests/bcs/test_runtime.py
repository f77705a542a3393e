"""Tests for the remote record runtime"""

import asyncio

import pytest

from suiodm.bcs.registry import TypeRegistry
from suiodm.bcs.runtime import Model
from suiodm.bcs.uleb128 import encode_uleb128
from suiodm.errors import RemoteCallError, SchemaError, ValidationError

PACKAGE = "0x8af0"
SCHEMA_ID = "0x37ce"
OUTLAW = {"name": "ascii", "power_level": "u64"}
KYRIE_RECORD = bytes.fromhex("054b79726965c700000000000000")
FAILED = {"effects": {"status": {"status": "failure", "error": "MoveAbort(7)"}}}


def created_response(object_id):
    return {
        "effects": {
            "status": {"status": "success"},
            "created": [{"owner": {"Shared": {"initial_shared_version": 1}}, "reference": {"objectId": object_id}}],
        }
    }


def view_response(payload):
    data = encode_uleb128(len(payload)) + payload
    return {"results": [{"returnValues": [[list(data), "vector<u8>"]]}]}


class FakeTransport:
    def __init__(self, execute_response=None, inspect_response=None):
        self.calls = []
        self.execute_response = execute_response or created_response("0xabc")
        self.inspect_response = inspect_response or view_response(KYRIE_RECORD)

    def execute(self, target, arguments):
        self.calls.append(("execute", target, arguments))
        return self.execute_response

    def inspect(self, target, arguments):
        self.calls.append(("inspect", target, arguments))
        return self.inspect_response


class FakeAsyncTransport(FakeTransport):
    async def execute(self, target, arguments):
        return super().execute(target, arguments)

    async def inspect(self, target, arguments):
        return super().inspect(target, arguments)


def make_model(transport, schema_id=SCHEMA_ID):
    return Model(
        schema=OUTLAW,
        registry=TypeRegistry(),
        transport=transport,
        package_id=PACKAGE,
        module="outlaw_sky",
        schema_id=schema_id,
    )


def describe_create():
    def sends_one_buffer_per_field(expect):
        transport = FakeTransport()
        created = make_model(transport).create({"name": "Kyrie", "power_level": 199})

        expect(created.shared) == ["0xabc"]
        expect(transport.calls) == [
            (
                "execute",
                "0x8af0::outlaw_sky::create",
                [SCHEMA_ID, [[5, 75, 121, 114, 105, 101], [199, 0, 0, 0, 0, 0, 0, 0]]],
            )
        ]

    def omits_the_schema_id_when_unset(expect):
        transport = FakeTransport()
        make_model(transport, schema_id=None).create({"name": "Kyrie", "power_level": 199})

        expect(transport.calls[0][2]) == [[[5, 75, 121, 114, 105, 101], [199, 0, 0, 0, 0, 0, 0, 0]]]

    def validates_before_sending(expect):
        transport = FakeTransport()
        with pytest.raises(ValidationError):
            make_model(transport).create({"name": "Kyrie"})
        expect(transport.calls) == []

    def propagates_failed_transactions(expect):
        transport = FakeTransport(execute_response={"effects": {"status": {"status": "failure"}}})
        with pytest.raises(RemoteCallError):
            make_model(transport).create({"name": "Kyrie", "power_level": 199})


def describe_update():
    def sends_only_the_selected_fields(expect):
        transport = FakeTransport(execute_response={"digest": "abc"})
        response = make_model(transport).update("0xabc", {"power_level": 200}, keys=["power_level"])

        expect(response) == {"digest": "abc"}
        expect(transport.calls) == [
            (
                "execute",
                "0x8af0::outlaw_sky::overwrite",
                ["0xabc", ["power_level"], [[200, 0, 0, 0, 0, 0, 0, 0]], SCHEMA_ID],
            )
        ]

    def raises_on_failed_transactions(expect):
        transport = FakeTransport(execute_response=FAILED)
        with pytest.raises(RemoteCallError) as exc:
            make_model(transport).update("0xabc", {"power_level": 200}, keys=["power_level"])
        expect(str(exc.value)) == "MoveAbort(7)"

    def rejects_unknown_keys(expect):
        transport = FakeTransport()
        with pytest.raises(SchemaError):
            make_model(transport).update("0xabc", {"level": 1}, keys=["level"])
        expect(transport.calls) == []


def describe_fetch():
    def decodes_the_view_payload(expect):
        transport = FakeTransport()
        record = make_model(transport).fetch("0xabc")

        expect(record) == {"name": "Kyrie", "power_level": 199}
        expect(transport.calls) == [("inspect", "0x8af0::outlaw_sky::view", ["0xabc", SCHEMA_ID])]

    def passes_requested_keys(expect):
        transport = FakeTransport(inspect_response=view_response(bytes.fromhex("c700000000000000")))
        record = make_model(transport).fetch("0xabc", keys=["power_level"])

        expect(record) == {"power_level": 199}
        expect(transport.calls[0][2]) == ["0xabc", SCHEMA_ID, ["power_level"]]

    def decodes_large_payloads(expect):
        registry = TypeRegistry()
        long_name = "x" * 300
        payload = encode_uleb128(len(long_name)) + long_name.encode()
        transport = FakeTransport(inspect_response=view_response(payload))
        model = Model(
            schema={"name": "ascii"},
            registry=registry,
            transport=transport,
            package_id=PACKAGE,
            module="outlaw_sky",
        )

        expect(model.fetch("0xabc")) == {"name": long_name}

    def propagates_remote_errors(expect):
        transport = FakeTransport(inspect_response={"error": "object not found"})
        with pytest.raises(RemoteCallError):
            make_model(transport).fetch("0xabc")


def describe_async():
    def creates_records(expect):
        transport = FakeAsyncTransport()
        model = make_model(transport)

        created = asyncio.run(model.create({"name": "Kyrie", "power_level": 199}, async_=True))

        expect(created.shared) == ["0xabc"]
        expect(transport.calls[0][1]) == "0x8af0::outlaw_sky::create"

    def updates_records(expect):
        transport = FakeAsyncTransport(execute_response={"digest": "abc"})
        model = make_model(transport)

        response = asyncio.run(model.update("0xabc", {"power_level": 200}, ["power_level"], async_=True))

        expect(response) == {"digest": "abc"}

    def raises_on_failed_updates(expect):
        model = make_model(FakeAsyncTransport(execute_response=FAILED))
        with pytest.raises(RemoteCallError):
            asyncio.run(model.update("0xabc", {"power_level": 200}, ["power_level"], async_=True))

    def fetches_records(expect):
        transport = FakeAsyncTransport()
        record = asyncio.run(make_model(transport).fetch("0xabc", async_=True))

        expect(record) == {"name": "Kyrie", "power_level": 199}

    def validates_before_awaiting(expect):
        model = make_model(FakeAsyncTransport())
        with pytest.raises(ValidationError):
            model.create({"name": 5, "power_level": 1}, async_=True)
