# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later


__all__ = 'XMLCompileError',  # noqa: COM818


class XMLCompileError(TypeError):
    """Raised when a record's role annotations cannot be compiled into an XML conversion."""
