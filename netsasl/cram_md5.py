########################################################################
# File name: cram_md5.py
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
import hashlib
import hmac
import logging
import typing

from . import common, statemachine, utils


logger = logging.getLogger(__name__)


def hmac_md5_hex(key: bytes, message: bytes) -> bytes:
    """
    Return the hex encoded HMAC-MD5 (:rfc:`2104`) of `message`, keyed with
    `key`.
    """
    return hmac.new(key, message, hashlib.md5).hexdigest().encode("ascii")


class CRAM_MD5(statemachine.Authenticator):
    """
    The ``CRAM-MD5`` SASL mechanism (see :rfc:`2195`).

    .. warning::

       ``CRAM-MD5`` is obsolete and only provided for compatibility with
       existing servers. Prefer ``SCRAM-*``, or ``PLAIN`` over TLS.

    The server sends a single challenge, which is answered with the user name
    and the HMAC-MD5 of the challenge keyed with the password. ``CRAM-MD5``
    has no notion of an authorization identity; passing `authzid` raises
    :class:`~.ConfigurationError`.
    """

    mechanism = "CRAM-MD5"

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
        self._done = False

    def process(
            self,
            challenge: typing.Optional[bytes],
            ) -> typing.Optional[bytes]:
        if self._done:
            raise self._error(
                common.ChallengeParseError,
                "unexpected challenge after the digest has been sent")
        if challenge is None:
            raise self._error(
                common.DataFormatError,
                "CRAM-MD5 requires a challenge from the server")

        logger.info("attempting CRAM-MD5 mechanism")
        digest = hmac_md5_hex(utils.to_bytes(self.credentials), challenge)
        self._done = True
        return utils.to_bytes(self.authcid) + b" " + digest

    def done(self) -> bool:
        return self._done
