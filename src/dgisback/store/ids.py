"""ObjectId parsing helpers."""

from bson import ObjectId
from bson.errors import InvalidId

from dgisback.errors import InvalidArgumentError


def parse_object_id(value: ObjectId | str) -> ObjectId:
    """Convert a hex string (or an ObjectId) into an ObjectId.

    :param value: 24 character hex string or ObjectId
    :return: The parsed ObjectId
    :raises InvalidArgumentError: If the value is not a valid identifier
    """
    if isinstance(value, ObjectId):
        return value
    msg = f"invalid identifier: {value!r}"
    # ObjectId(None) generates a fresh id instead of failing
    if not isinstance(value, str):
        raise InvalidArgumentError(msg)
    try:
        return ObjectId(value)
    except InvalidId as e:
        raise InvalidArgumentError(msg) from e


def is_valid_object_id(value: object) -> bool:
    return isinstance(value, ObjectId) or (
        isinstance(value, str) and ObjectId.is_valid(value)
    )
