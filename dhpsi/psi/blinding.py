# Copyright 2025 Ant Group Co., Ltd.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Blinding and re-exponentiation.

Blinding maps an identifier to g^(H(id) * s) mod p. Re-exponentiation raises
an already blinded value to one more secret. Because exponents multiply,

    (g^(H(id) * a))^b == (g^(H(id) * b))^a  (mod p)

so two parties who each apply their own secret to both sets end up with
equal values exactly for the identifiers they share. The relay variant adds
a third exponent K on both chains without changing that property.

Every per-identifier exponentiation is independent. An optional
`concurrent.futures.Executor` may be passed to spread the work; a
`ProcessPoolExecutor` gives real parallelism since `pow` holds the GIL.
Only plain integers are submitted, never `Secret` objects.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from concurrent.futures import Executor

from dhpsi.crypto.group import DEFAULT_GROUP, GroupParameters
from dhpsi.crypto.hashing import hash_identifier
from dhpsi.crypto.secret import Secret
from dhpsi.exceptions import DataError
from dhpsi.logging_config import get_logger
from dhpsi.psi.types import BlindedSet

logger = get_logger(__name__)

# Items per task when an executor is used
_CHUNK_SIZE = 64


def _modpow_all(
    bases: list[int],
    exponents: list[int],
    modulus: int,
    executor: Executor | None,
) -> list[int]:
    if executor is None:
        return [pow(b, e, modulus) for b, e in zip(bases, exponents)]
    moduli = [modulus] * len(bases)
    return list(executor.map(pow, bases, exponents, moduli, chunksize=_CHUNK_SIZE))


def compute_blinded(
    identifiers: Iterable[str],
    secret: Secret,
    group: GroupParameters = DEFAULT_GROUP,
    executor: Executor | None = None,
) -> BlindedSet:
    """Blind a batch of identifiers with a secret.

    Args:
        identifiers: Identifiers to blind. Duplicates collapse to one entry.
        secret: The caller's private exponent.
        group: Shared group parameters.
        executor: Optional executor to parallelise the exponentiations.

    Returns:
        Mapping identifier -> g^(H(id) * secret) mod p, in input order.
    """
    ids = list(dict.fromkeys(identifiers))
    s = secret.value
    exponents = [hash_identifier(i, group) * s for i in ids]
    values = _modpow_all([group.generator] * len(ids), exponents, group.modulus, executor)
    logger.debug(f"Blinded {len(ids)} identifiers")
    return dict(zip(ids, values))


def re_exponentiate(
    values: Mapping[str, int],
    secret: Secret,
    group: GroupParameters = DEFAULT_GROUP,
    executor: Executor | None = None,
) -> BlindedSet:
    """Raise every value of a blinded set to the secret.

    The keys are carried through unchanged, so the producer of the original
    set can still associate each result with its own identifier.

    Raises:
        DataError: If a value is not an integer in [0, modulus).
    """
    ids = list(values.keys())
    bases = list(values.values())
    for b in bases:
        if not isinstance(b, int) or isinstance(b, bool) or not group.contains(b):
            raise DataError("Blinded value outside the group range")
    results = _modpow_all(bases, [secret.value] * len(bases), group.modulus, executor)
    logger.debug(f"Re-exponentiated {len(ids)} values")
    return dict(zip(ids, results))


__all__ = ["compute_blinded", "re_exponentiate"]
