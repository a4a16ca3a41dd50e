"""Structural save-state snapshots of the emulator state.

A snapshot is a nested dict of numpy arrays holding every pytree field
(as produced by ``flax.serialization.to_state_dict``) plus the static
quirk flags under ``"quirks"``. Choosing a file format is left to the
frontend; ``to_bytes``/``from_bytes`` offer flax's msgpack encoding.
"""

from typing import Any, Dict

import jax
import jax.numpy as jnp
import numpy as np
from flax import serialization

from schax.state import EmulatorState, create_state, QUIRK_FIELDS


def snapshot(state: EmulatorState) -> Dict[str, Any]:
    """Copy every field of ``state`` into plain numpy arrays."""
    state_dict = jax.tree.map(np.asarray, serialization.to_state_dict(state))
    state_dict["quirks"] = dict(state.quirks)
    return state_dict


def restore(state_dict: Dict[str, Any]) -> EmulatorState:
    """Rebuild an ``EmulatorState`` from a ``snapshot`` result."""
    state_dict = dict(state_dict)
    quirks = {name: bool(value) for name, value in state_dict.pop("quirks", {}).items()}
    template = create_state(**{name: quirks.get(name, False) for name in QUIRK_FIELDS})
    reference = serialization.to_state_dict(template)
    typed = jax.tree.map(
        lambda ref, value: jnp.asarray(value, dtype=jnp.asarray(ref).dtype).reshape(jnp.shape(ref)),
        reference,
        state_dict,
    )
    return serialization.from_state_dict(template, typed)


def to_bytes(state: EmulatorState) -> bytes:
    """Encode a snapshot with flax's msgpack serializer."""
    return serialization.msgpack_serialize(snapshot(state))


def from_bytes(data: bytes) -> EmulatorState:
    """Decode bytes produced by ``to_bytes``."""
    return restore(serialization.msgpack_restore(data))
