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
"""Unified exception hierarchy for docshape.

All errors inherit from DocShapeException so callers can catch the whole
family at once, or a specific subclass for targeted handling.

Categories:
- BusinessException: caller-side mistakes detected before anything is sent
  (invalid expressions, modifiers, update specs) and rejected writes.
- InfrastructureException: store transport failures and rejected requests.

A missing target is not an error. Executors return ``NOT_FOUND`` for it.
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class DocShapeException(Exception):
    """Base exception for all docshape errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. a store error code).
        context: Arbitrary key-value pairs for error context and debugging.
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Business Exceptions
# =============================================================================


class BusinessException(DocShapeException):
    """Caller-side errors and rejected business operations."""


class InvalidExpressionError(BusinessException):
    """A predicate or filter expression cannot be compiled.

    Raised for nested expressions inside ``In``/``NotIn`` value lists,
    patterns that do not parse, empty disjunctions and unknown operators.
    """


class InvalidModifiersError(BusinessException):
    """Query modifiers are inconsistent (mixed projection, negative window)."""


class InvalidUpdateError(BusinessException):
    """An update spec cannot be executed as built (no target, no operators, conflicts)."""


class UpdateRejectedError(BusinessException):
    """The store or the in-memory application refused the write."""


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(DocShapeException):
    """Failures talking to the document store."""


class StoreUnavailableError(InfrastructureException):
    """Connection or transport failure. Safe to retry with backoff."""

    retryable = True


class StoreQueryError(InfrastructureException):
    """The store rejected a compiled request. Never retried."""
