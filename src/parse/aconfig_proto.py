"""Runtime message classes for the aconfig ``parsed_flags`` schema.

Mirrors the subset of ``aconfig.proto`` (package ``android.aconfig``) that
``aconfig dump`` writes. Fields not declared here are kept as unknown fields
by the protobuf runtime, so newer producers still decode.
"""

from __future__ import annotations

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

PROTO_PACKAGE = "android.aconfig"

_Field = descriptor_pb2.FieldDescriptorProto

_OPTIONAL = _Field.LABEL_OPTIONAL
_REPEATED = _Field.LABEL_REPEATED


def _add_field(
    message: descriptor_pb2.DescriptorProto,
    name: str,
    number: int,
    field_type: int,
    *,
    label: int = _OPTIONAL,
    type_name: str | None = None,
) -> None:
    field = message.field.add(name=name, number=number, type=field_type, label=label)
    if type_name is not None:
        field.type_name = f".{PROTO_PACKAGE}.{type_name}"


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="android/aconfig/aconfig.proto",
        package=PROTO_PACKAGE,
        syntax="proto2",
    )

    state = file_proto.enum_type.add(name="flag_state")
    state.value.add(name="ENABLED", number=1)
    state.value.add(name="DISABLED", number=2)

    permission = file_proto.enum_type.add(name="flag_permission")
    permission.value.add(name="READ_ONLY", number=1)
    permission.value.add(name="READ_WRITE", number=2)

    tracepoint = file_proto.message_type.add(name="tracepoint")
    _add_field(tracepoint, "source", 1, _Field.TYPE_STRING)
    _add_field(tracepoint, "state", 2, _Field.TYPE_ENUM, type_name="flag_state")
    _add_field(
        tracepoint, "permission", 3, _Field.TYPE_ENUM, type_name="flag_permission"
    )

    parsed_flag = file_proto.message_type.add(name="parsed_flag")
    _add_field(parsed_flag, "package", 1, _Field.TYPE_STRING)
    _add_field(parsed_flag, "name", 2, _Field.TYPE_STRING)
    _add_field(parsed_flag, "namespace", 3, _Field.TYPE_STRING)
    _add_field(parsed_flag, "description", 4, _Field.TYPE_STRING)
    _add_field(parsed_flag, "bug", 5, _Field.TYPE_STRING, label=_REPEATED)
    _add_field(parsed_flag, "state", 6, _Field.TYPE_ENUM, type_name="flag_state")
    _add_field(
        parsed_flag, "permission", 7, _Field.TYPE_ENUM, type_name="flag_permission"
    )
    _add_field(
        parsed_flag,
        "trace",
        8,
        _Field.TYPE_MESSAGE,
        label=_REPEATED,
        type_name="tracepoint",
    )
    _add_field(parsed_flag, "is_fixed_read_only", 9, _Field.TYPE_BOOL)
    _add_field(parsed_flag, "is_exported", 10, _Field.TYPE_BOOL)
    _add_field(parsed_flag, "container", 11, _Field.TYPE_STRING)

    parsed_flags = file_proto.message_type.add(name="parsed_flags")
    _add_field(
        parsed_flags,
        "parsed_flag",
        1,
        _Field.TYPE_MESSAGE,
        label=_REPEATED,
        type_name="parsed_flag",
    )
    return file_proto


_POOL = descriptor_pool.DescriptorPool()
_POOL.AddSerializedFile(_build_file().SerializeToString())

ParsedFlag = message_factory.GetMessageClass(
    _POOL.FindMessageTypeByName(f"{PROTO_PACKAGE}.parsed_flag")
)
ParsedFlags = message_factory.GetMessageClass(
    _POOL.FindMessageTypeByName(f"{PROTO_PACKAGE}.parsed_flags")
)

_FLAG_STATE = _POOL.FindEnumTypeByName(f"{PROTO_PACKAGE}.flag_state")
ENABLED: int = _FLAG_STATE.values_by_name["ENABLED"].number
DISABLED: int = _FLAG_STATE.values_by_name["DISABLED"].number

__all__ = ["DISABLED", "ENABLED", "PROTO_PACKAGE", "ParsedFlag", "ParsedFlags"]
