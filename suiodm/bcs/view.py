"""Unwrap remote call responses into the bytes the deserializer expects."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from suiodm.errors import DecodeError, RemoteCallError

from .uleb128 import strip_uleb128


def check_response(response: Mapping[str, Any]) -> None:
    """Raise RemoteCallError if a response envelope reports a failure."""
    error = response.get("error")
    if error:
        raise RemoteCallError(str(error))

    effects = response.get("effects")
    if isinstance(effects, Mapping):
        status = effects.get("status")
        if isinstance(status, Mapping) and status.get("status") not in (None, "success"):
            raise RemoteCallError(str(status.get("error", status.get("status"))))

    results = response.get("results")
    if isinstance(results, Mapping) and "Err" in results:
        raise RemoteCallError(str(results["Err"]))


def _first_result(response: Mapping[str, Any]) -> Mapping[str, Any]:
    results = response.get("results")

    # Legacy shape: {"Ok": [[command_index, {"returnValues": ...}], ...]}
    if isinstance(results, Mapping):
        results = results.get("Ok")
        if isinstance(results, Sequence) and results and isinstance(results[0], Sequence):
            results = [entry[1] for entry in results if len(entry) > 1]

    if not isinstance(results, Sequence) or not results or not isinstance(results[0], Mapping):
        raise DecodeError("Malformed view response: no results")
    return results[0]


def extract_return_bytes(response: Mapping[str, Any]) -> bytes:
    """Return the first byte array of the first return value of the first result.

    Raises RemoteCallError when the envelope reports a failure.
    """
    if not isinstance(response, Mapping):
        raise DecodeError(f"Malformed view response: {type(response).__name__}")

    check_response(response)

    return_values = _first_result(response).get("returnValues")
    if not isinstance(return_values, Sequence) or not return_values:
        raise DecodeError("Malformed view response: no return values")

    value = return_values[0]
    # Each return value is a [bytes, type_tag] pair
    if isinstance(value, Sequence) and value and isinstance(value[0], (Sequence, bytes, bytearray)):
        value = value[0]

    try:
        return bytes(value)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Malformed view response: return value is not bytes ({e})") from e


def extract_payload(response: Mapping[str, Any]) -> bytes:
    """Return the view payload with its ULEB128 length prefix removed.

    A view function returning ``vector<u8>`` has its bytes wrapped once more
    by the remote environment. The prefix may span several bytes for payloads
    of 128 bytes or more, and must equal the remaining length.
    """
    data = extract_return_bytes(response)
    length, payload = strip_uleb128(data)
    if length != len(payload):
        raise DecodeError(f"View payload length prefix is {length} but {len(payload)} bytes follow")
    return payload


@dataclass
class CreatedObjects:
    """Object ids created by a transaction, grouped by owner kind."""

    address_owner: list[str] = field(default_factory=list)
    object_owner: list[str] = field(default_factory=list)
    immutable: list[str] = field(default_factory=list)
    shared: list[str] = field(default_factory=list)


def _created_entries(response: Mapping[str, Any]) -> Sequence[Mapping[str, Any]]:
    effects = response.get("effects")
    if isinstance(effects, Mapping) and isinstance(effects.get("effects"), Mapping):
        effects = effects["effects"]
    if not isinstance(effects, Mapping):
        return []
    return effects.get("created") or []


def created_objects(response: Mapping[str, Any]) -> CreatedObjects:
    """Sort the objects created by a transaction by their owner kind."""
    check_response(response)

    result = CreatedObjects()
    for entry in _created_entries(response):
        owner = entry.get("owner")
        object_id = entry["reference"]["objectId"]

        if owner == "Immutable":
            result.immutable.append(object_id)
        elif isinstance(owner, Mapping) and "Shared" in owner:
            result.shared.append(object_id)
        elif isinstance(owner, Mapping) and "ObjectOwner" in owner:
            result.object_owner.append(object_id)
        elif isinstance(owner, Mapping) and "AddressOwner" in owner:
            result.address_owner.append(object_id)

    return result
