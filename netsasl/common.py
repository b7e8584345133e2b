########################################################################
# File name: common.py
# This file is part of: netsasl
#
# LICENSE
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Lesser General Public License as
# published by the Free Software Foundation, either version 3 of the
# License, or (at your option) any later version.
#
# This program is distributed in the hope that it will be useful, but
# WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU
# Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public
# License along with this program.  If not, see
# <http://www.gnu.org/licenses/>.
#
########################################################################
import typing


class SASLError(Exception):
    """
    Base class for a SASL related error. `text` may be a human-readable
    string describing the error condition in more detail. `mechanism` is the
    name of the SASL mechanism which raised the error, if known.

    The message of the exception is composed of the mechanism name, the
    `kind` of the error (a class attribute set by the subclasses) and the
    `text`, skipping any of those which are not available.

    .. attribute:: mechanism

       The value passed to the respective constructor argument.

    .. attribute:: text

       The value passed to the respective constructor argument.

    """

    kind = "SASL error"

    def __init__(
            self,
            text: typing.Optional[str] = None,
            *,
            mechanism: typing.Optional[str] = None):
        msg = self.kind
        if mechanism:
            msg = "{}: {}".format(mechanism, msg)
        if text:
            msg += ": {}".format(text)
        super().__init__(msg)
        self.mechanism = mechanism
        self.text = text


class ConfigurationError(SASLError, ValueError):
    """
    The arguments passed to an authenticator are invalid or not allowed for
    the mechanism (for example, a NUL byte in a ``PLAIN`` field or an
    authorization identity passed to ``LOGIN``).

    This is also a :class:`ValueError`.
    """

    kind = "invalid configuration"


class UnknownMechanismError(ConfigurationError):
    """
    No authenticator is registered under the requested mechanism name.
    """

    kind = "unknown SASL mechanism"


class DataFormatError(SASLError):
    """
    A challenge could not be parsed according to the grammar of the
    mechanism.
    """

    kind = "malformed challenge"


class ChallengeParseError(SASLError):
    """
    A challenge was syntactically valid, but its contents indicate a failed
    or spoofed exchange (for example, an invalid server signature).

    Applications must treat this as an authentication failure.
    """

    kind = "challenge rejected"


#: Callable which is asked for a named property (``"authcid"``,
#: ``"credentials"``, ``"realm"``, ...) when no value has been passed
#: explicitly. It returns :data:`None` if it cannot provide the property.
PropertyProvider = typing.Callable[[str], typing.Optional[typing.Any]]

Credential = typing.Union[str, bytes]
