"""Read and write schema records through an external transport."""

from collections.abc import Awaitable, Coroutine, Mapping, Sequence
from typing import Any, Literal, Protocol, overload

from structlog import get_logger

from suiodm.schema.schema import Schema

from .registry import TypeRegistry
from .serialization import FieldSerializer
from .view import CreatedObjects, check_response, created_objects, extract_payload

logger = get_logger()


class Transport(Protocol):
    """Synchronous remote call boundary.

    ``execute`` submits a transaction calling ``target`` and returns the
    execution response. ``inspect`` performs a read-only call and returns the
    nested result envelope.
    """

    def execute(self, target: str, arguments: Sequence[Any]) -> Mapping[str, Any]: ...

    def inspect(self, target: str, arguments: Sequence[Any]) -> Mapping[str, Any]: ...


class AsyncTransport(Protocol):
    """Asynchronous counterpart of Transport."""

    def execute(self, target: str, arguments: Sequence[Any]) -> Awaitable[Mapping[str, Any]]: ...

    def inspect(self, target: str, arguments: Sequence[Any]) -> Awaitable[Mapping[str, Any]]: ...


class Model:
    """A schema-bound record stored on the ledger.

    Writes go through ``package::module::create`` and
    ``package::module::overwrite``; reads go through the read-only
    ``package::module::view``. Transport errors propagate unchanged and are
    never retried here.

    Supports both synchronous and asynchronous transports. For async
    transports, pass ``async_=True`` and await the result.

    Example (sync):
        model = Model(schema=schema, registry=registry, transport=client,
                      package_id="0x8af0", module="outlaw_sky", schema_id="0x37ce")
        created = model.create({"name": "Kyrie", "power_level": 199})
        model.update(created.shared[0], {"power_level": 200}, keys=["power_level"])
        model.fetch(created.shared[0])

    Example (async):
        record = await model.fetch(object_id, async_=True)
    """

    def __init__(
        self,
        *,
        schema: Schema | Mapping[str, str],
        registry: TypeRegistry,
        transport: Transport | AsyncTransport,
        package_id: str,
        module: str,
        schema_id: str | None = None,
    ) -> None:
        self.log = logger.new(package_id=package_id, module=module)
        self.schema = Schema.coerce(schema)
        self.serializer = FieldSerializer(self.schema, registry)
        self.package_id = package_id
        self.module = module
        self.schema_id = schema_id
        self._transport = transport

    def target(self, function: str) -> str:
        return f"{self.package_id}::{self.module}::{function}"

    def _with_schema(self, arguments: list[Any]) -> list[Any]:
        if self.schema_id is not None:
            arguments.append(self.schema_id)
        return arguments

    def _create_call(self, value: Mapping[str, Any]) -> tuple[str, list[Any]]:
        buffers = self.serializer.serialize(value)
        args: list[Any] = [self.schema_id] if self.schema_id is not None else []
        args.append([list(b) for b in buffers])
        return self.target("create"), args

    def _update_call(
        self, object_id: str, value: Mapping[str, Any], keys: Sequence[str]
    ) -> tuple[str, list[Any]]:
        selected = self.schema.select(keys)
        buffers = self.serializer.serialize(value, selected)
        args = [object_id, selected, [list(b) for b in buffers]]
        return self.target("overwrite"), self._with_schema(args)

    def _decode_view(self, response: Mapping[str, Any], keys: Sequence[str] | None) -> dict[str, Any]:
        payload = extract_payload(response)
        return self.serializer.unpack_record(payload, keys)

    @overload
    def create(self, value: Mapping[str, Any], *, async_: Literal[False] = False) -> CreatedObjects: ...

    @overload
    def create(
        self, value: Mapping[str, Any], *, async_: Literal[True]
    ) -> Coroutine[Any, Any, CreatedObjects]: ...

    def create(
        self, value: Mapping[str, Any], *, async_: bool = False
    ) -> CreatedObjects | Coroutine[Any, Any, CreatedObjects]:
        """Validate, serialize and submit a new record.

        Returns:
            The objects created by the transaction, or a coroutine for async.
        """
        target, args = self._create_call(value)
        if async_:
            return self._create_async(target, args)

        self.log.info("creating record", target=target)
        response = self._transport.execute(target, args)
        return created_objects(response)

    async def _create_async(self, target: str, args: list[Any]) -> CreatedObjects:
        self.log.info("creating record", target=target)
        response = await self._transport.execute(target, args)
        return created_objects(response)

    @overload
    def update(
        self,
        object_id: str,
        value: Mapping[str, Any],
        keys: Sequence[str],
        *,
        async_: Literal[False] = False,
    ) -> Mapping[str, Any]: ...

    @overload
    def update(
        self,
        object_id: str,
        value: Mapping[str, Any],
        keys: Sequence[str],
        *,
        async_: Literal[True],
    ) -> Coroutine[Any, Any, Mapping[str, Any]]: ...

    def update(
        self,
        object_id: str,
        value: Mapping[str, Any],
        keys: Sequence[str],
        *,
        async_: bool = False,
    ) -> Mapping[str, Any] | Coroutine[Any, Any, Mapping[str, Any]]:
        """Overwrite only the ``keys`` fields of an existing record.

        Returns:
            The raw execution response, or a coroutine for async.

        Raises:
            RemoteCallError: The response reports a failed transaction.
        """
        target, args = self._update_call(object_id, value, keys)
        if async_:
            return self._update_async(target, args)

        self.log.info("updating record", target=target, object_id=object_id, fields=args[1])
        response = self._transport.execute(target, args)
        check_response(response)
        return response

    async def _update_async(self, target: str, args: list[Any]) -> Mapping[str, Any]:
        self.log.info("updating record", target=target, object_id=args[0], fields=args[1])
        response = await self._transport.execute(target, args)
        check_response(response)
        return response

    @overload
    def fetch(
        self, object_id: str, keys: Sequence[str] | None = None, *, async_: Literal[False] = False
    ) -> dict[str, Any]: ...

    @overload
    def fetch(
        self, object_id: str, keys: Sequence[str] | None = None, *, async_: Literal[True]
    ) -> Coroutine[Any, Any, dict[str, Any]]: ...

    def fetch(
        self, object_id: str, keys: Sequence[str] | None = None, *, async_: bool = False
    ) -> dict[str, Any] | Coroutine[Any, Any, dict[str, Any]]:
        """Read a record through the module's view function.

        Args:
            object_id: The record's object id.
            keys: Fields the view returns, in order. Defaults to every field.
            async_: If True, returns a coroutine for async transports.
        """
        selected = self.schema.select(keys)
        target = self.target("view")
        args = self._with_schema([object_id])
        if keys is not None:
            args.append(selected)

        if async_:
            return self._fetch_async(target, args, keys)

        self.log.debug("fetching record", target=target, object_id=object_id)
        return self._decode_view(self._transport.inspect(target, args), keys)

    async def _fetch_async(
        self, target: str, args: list[Any], keys: Sequence[str] | None
    ) -> dict[str, Any]:
        self.log.debug("fetching record", target=target, object_id=args[0])
        response = await self._transport.inspect(target, args)
        return self._decode_view(response, keys)
