########################################################################
# File name: login.py
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
import enum
import logging
import typing

from . import common, statemachine, utils


logger = logging.getLogger(__name__)


class LoginState(enum.Enum):
    AWAITING_USER = "awaiting-user"
    AWAITING_PASSWORD = "awaiting-password"
    DONE = "done"


class LOGIN(statemachine.Authenticator):
    """
    The obsolete ``LOGIN`` SASL mechanism (see
    draft-murchison-sasl-login). The server prompts for the user name and
    the password, which are sent in cleartext. Use ``PLAIN`` if the server
    supports it.

    ``LOGIN`` has no notion of an authorization identity; passing `authzid`
    raises :class:`~.ConfigurationError`.
    """

    mechanism = "LOGIN"

    def __init__(
            self,
            authcid: typing.Optional[common.Credential] = None,
            credentials: typing.Optional[common.Credential] = None,
            authzid: typing.Optional[common.Credential] = None,
            **kwargs: typing.Any) -> None:
        super().__init__(authcid, credentials, authzid, **kwargs)
        if self.authzid:
            raise self._error(
                common.ConfigurationError,
                "authzid is not supported")
        self._state = LoginState.AWAITING_USER

    def process(
            self,
            challenge: typing.Optional[bytes],
            ) -> typing.Optional[bytes]:
        if self._state == LoginState.AWAITING_USER:
            logger.info("attempting LOGIN mechanism")
            self._state = LoginState.AWAITING_PASSWORD
            return utils.to_bytes(self.authcid)

        if self._state == LoginState.AWAITING_PASSWORD:
            self._state = LoginState.DONE
            return utils.to_bytes(self.credentials)

        raise self._error(
            common.ChallengeParseError,
            "unexpected challenge after the password has been sent")

    def done(self) -> bool:
        return self._state == LoginState.DONE
