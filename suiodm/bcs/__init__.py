"""BCS codecs, field-level serialization and the remote record runtime."""

from .codecs import Codec as Codec
from .registry import ADDRESS_LENGTH as ADDRESS_LENGTH
from .registry import TypeRegistry as TypeRegistry
from .runtime import AsyncTransport as AsyncTransport
from .runtime import Model as Model
from .runtime import Transport as Transport
from .serialization import FieldSerializer as FieldSerializer
from .serialization import TypeSerializer as TypeSerializer
from .serialization import deserialize_fields as deserialize_fields
from .serialization import serialize_fields as serialize_fields
from .uleb128 import decode_uleb128 as decode_uleb128
from .uleb128 import encode_uleb128 as encode_uleb128
from .uleb128 import strip_uleb128 as strip_uleb128
from .validation import Validator as Validator
from .validation import validate as validate
from .view import CreatedObjects as CreatedObjects
from .view import check_response as check_response
from .view import created_objects as created_objects
from .view import extract_payload as extract_payload
from .view import extract_return_bytes as extract_return_bytes
