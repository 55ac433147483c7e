"""
Protocol buffer types for ``api/v1/v1.proto``.

The file descriptor is assembled from ``descriptor_pb2`` at import time and
registered in the default pool, which yields the same message classes that
``protoc`` output would. Keep it in sync with ``v1.proto``.
"""

from google.protobuf import descriptor_pb2
from google.protobuf import descriptor_pool as _descriptor_pool
from google.protobuf import message_factory as _message_factory
from google.protobuf.internal import enum_type_wrapper as _enum_type_wrapper

PACKAGE = "api.v1"
SERVICE_NAME = f"{PACKAGE}.LocalizerService"

_FieldProto = descriptor_pb2.FieldDescriptorProto


def _add_string(message, name, number, repeated=False):
    message.field.add(
        name=name,
        number=number,
        json_name=_json_name(name),
        type=_FieldProto.TYPE_STRING,
        label=_FieldProto.LABEL_REPEATED if repeated else _FieldProto.LABEL_OPTIONAL,
    )


def _json_name(name):
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _build_file():
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="localizer/api/v1/v1.proto", package=PACKAGE, syntax="proto3"
    )

    expose = file_proto.message_type.add(name="ExposeServiceRequest")
    _add_string(expose, "namespace", 1)
    _add_string(expose, "service", 2)
    _add_string(expose, "port_map", 3, repeated=True)

    stop = file_proto.message_type.add(name="StopExposeRequest")
    _add_string(stop, "namespace", 1)
    _add_string(stop, "service", 2)

    level = file_proto.enum_type.add(name="ConsoleLevel")
    for number, suffix in enumerate(("UNSPECIFIED", "INFO", "WARN", "ERROR")):
        level.value.add(name=f"CONSOLE_LEVEL_{suffix}", number=number)

    console = file_proto.message_type.add(name="ConsoleResponse")
    console.field.add(
        name="level",
        number=1,
        json_name="level",
        type=_FieldProto.TYPE_ENUM,
        type_name=f".{PACKAGE}.ConsoleLevel",
        label=_FieldProto.LABEL_OPTIONAL,
    )
    _add_string(console, "message", 2)

    service = file_proto.service.add(name="LocalizerService")
    service.method.add(
        name="ExposeService",
        input_type=f".{PACKAGE}.ExposeServiceRequest",
        output_type=f".{PACKAGE}.ConsoleResponse",
        server_streaming=True,
    )
    service.method.add(
        name="StopExpose",
        input_type=f".{PACKAGE}.StopExposeRequest",
        output_type=f".{PACKAGE}.ConsoleResponse",
        server_streaming=True,
    )
    return file_proto


DESCRIPTOR = _descriptor_pool.Default().AddSerializedFile(
    _build_file().SerializeToString()
)

ConsoleLevel = _enum_type_wrapper.EnumTypeWrapper(DESCRIPTOR.enum_types_by_name["ConsoleLevel"])
CONSOLE_LEVEL_UNSPECIFIED = 0
CONSOLE_LEVEL_INFO = 1
CONSOLE_LEVEL_WARN = 2
CONSOLE_LEVEL_ERROR = 3

ExposeServiceRequest = _message_factory.GetMessageClass(
    DESCRIPTOR.message_types_by_name["ExposeServiceRequest"]
)
StopExposeRequest = _message_factory.GetMessageClass(
    DESCRIPTOR.message_types_by_name["StopExposeRequest"]
)
ConsoleResponse = _message_factory.GetMessageClass(
    DESCRIPTOR.message_types_by_name["ConsoleResponse"]
)
