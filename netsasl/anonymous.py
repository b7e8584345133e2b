########################################################################
# File name: anonymous.py
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
import logging
import typing

from . import common, statemachine, stringprep


logger = logging.getLogger(__name__)


class ANONYMOUS(statemachine.Authenticator):
    """
    The ANONYMOUS SASL mechanism (see :rfc:`4505`).

    The trace message is taken from the ``trace`` option, falling back to
    `authcid` (often an email address) and finally to the empty string. It is
    checked against the ``trace`` stringprep profile and may not exceed 255
    characters.

    ``ANONYMOUS`` is not part of the default registry; add it explicitly if
    anonymous access is wanted.
    """

    mechanism = "ANONYMOUS"

    def __init__(self, *args: typing.Any, **kwargs: typing.Any) -> None:
        super().__init__(*args, **kwargs)
        self._done = False

    def _get_token(self) -> bytes:
        token = self.get_property("trace")
        if token is None:
            token = self.authcid
        if token is None:
            token = ""
        if isinstance(token, bytes):
            token = token.decode("utf-8", errors="replace")

        if len(token) > 255:
            raise self._error(
                common.ConfigurationError,
                "trace message exceeds 255 characters")

        try:
            return stringprep.trace(token).encode("utf-8")
        except ValueError as exc:
            raise self._error(
                common.ConfigurationError,
                "invalid trace message: {}".format(exc)
            ) from None

    def supports_initial_response(self) -> bool:
        return True

    def process(
            self,
            challenge: typing.Optional[bytes],
            ) -> typing.Optional[bytes]:
        if self._done:
            raise self._error(
                common.ChallengeParseError,
                "the server must not send challenges")

        logger.info("attempting ANONYMOUS mechanism")
        token = self._get_token()
        self._done = True
        return token

    def done(self) -> bool:
        return self._done
