# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Single-request dispatch shared by the executors."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from docshape.kernel.exceptions import DocShapeException, InvalidExpressionError, StoreUnavailableError
from docshape.query.expression import FilterExpression, compile_filter
from docshape.query.parser import parse_filter
from docshape.query.predicate import Predicate
from docshape.store.port import StoreConnectionPort
from docshape.store.request import CompiledRequest, RawResponse

logger = logging.getLogger(__name__)

FilterLike = FilterExpression | Predicate | Mapping[str, Any]


def as_expression(expression: FilterLike | None) -> FilterExpression | Predicate | None:
    """Accept an expression, a predicate or a store-style mapping."""
    if isinstance(expression, Mapping):
        return parse_filter(expression)
    if expression is not None and not isinstance(expression, (FilterExpression, Predicate)):
        raise InvalidExpressionError(
            f"Expected a FilterExpression, Predicate or mapping, got {type(expression).__name__}"
        )
    return expression


def filter_document(expression: FilterLike | None) -> dict[str, Any]:
    return compile_filter(as_expression(expression))


async def dispatch(
    connection: StoreConnectionPort,
    request: CompiledRequest,
    rejected: type[DocShapeException],
    context: dict[str, Any] | None = None,
) -> RawResponse:
    """Send *request* once and return the successful response.

    Raises:
        StoreUnavailableError: the connection is down or the transport failed.
        rejected: the store answered with an error.
    """
    if not connection.is_connected():
        logger.warning("Store connection unavailable; %s not sent", request.kind.value)
        raise StoreUnavailableError(
            "Store connection is not available",
            context={"kind": request.kind.value},
        )

    logger.debug("Executing %s filter=%s", request.kind.value, request.filter)
    try:
        response = await connection.send(request)
    except StoreUnavailableError as exc:
        logger.warning("Store unavailable during %s: %s", request.kind.value, exc)
        raise

    if not response.ok:
        logger.warning(
            "Store rejected %s: [%s] %s",
            request.kind.value,
            response.error_code,
            response.error_message,
        )
        raise rejected(
            response.error_message or f"Store rejected {request.kind.value}",
            code=None if response.error_code is None else str(response.error_code),
            context={"kind": request.kind.value, **(context or {})},
        )
    return response
