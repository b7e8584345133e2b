########################################################################
# File name: scram.py
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
import base64
import binascii
import collections
import enum
import functools
import hashlib
import hmac
import logging
import time
import typing

from hashlib import pbkdf2_hmac as pbkdf2

from . import common, statemachine, stringprep, utils


logger = logging.getLogger(__name__)


SCRAMHashInfo = collections.namedtuple(
    "SCRAMHashInfo",
    [
        "mechanism_suffix",
        "hashfun_name",
        "minimum_iteration_count",
    ]
)


class SCRAMHash(enum.Enum):
    """
    The hash functions supported for the SCRAM family.

    The minimum iteration counts are taken from
    <https://www.iana.org/assignments/sasl-mechanisms/sasl-mechanisms.xhtml>
    where specified; 4096 otherwise.
    """

    SHA1 = SCRAMHashInfo("SHA-1", "sha1", 4096)
    SHA224 = SCRAMHashInfo("SHA-224", "sha224", 4096)
    SHA256 = SCRAMHashInfo("SHA-256", "sha256", 4096)
    SHA384 = SCRAMHashInfo("SHA-384", "sha384", 4096)
    SHA512 = SCRAMHashInfo("SHA-512", "sha512", 4096)

    @property
    def mechanism(self) -> str:
        return "SCRAM-" + self.value.mechanism_suffix

    @property
    def digest_size(self) -> int:
        return hashlib.new(self.value.hashfun_name).digest_size

    def new(self, data: bytes = b"") -> typing.Any:
        return hashlib.new(self.value.hashfun_name, data)

    def hmac(self, key: bytes, msg: bytes) -> bytes:
        return hmac.new(key, msg, self.value.hashfun_name).digest()


class SCRAMState(enum.Enum):
    INITIAL = "initial"
    AWAIT_FIRST = "await-first"
    AWAIT_FINAL = "await-final"
    DONE = "done"
    FAILED = "failed"


def escape_saslname(value: bytes) -> bytes:
    return value.replace(b"=", b"=3D").replace(b",", b"=2C")


class SCRAM(statemachine.Authenticator):
    """
    The password-based SCRAM (non-PLUS) SASL mechanism family (see
    :rfc:`5802` and :rfc:`7677`), generic over the hash function.

    :param hashfun: The hash function to use.
    :type hashfun: :class:`SCRAMHash`

    Additional options:

    ``cnonce``
       The client nonce to use, instead of a random one. Only useful for
       tests.

    ``nonce_length``
       Number of random bytes in the client nonce (15 by default).

    ``enforce_minimum_iteration_count``
       Reject server-first messages with an iteration count below the
       minimum specified for the hash function (enabled by default). You are
       strongly advised to not disable it: a lower iteration count can be
       used by an attacker to make the exchange weaker.

    .. note::

       As "non-PLUS" suggests, this does not support channel binding. The
       channel binding attribute of the client-final message is always
       ``c=biws`` (the base64 encoding of ``n,,``).

    The exchange takes three calls to :meth:`process`: the initial response
    (``process(None)``), the answer to the server-first message, and the
    verification of the server-final message. If the server signature does
    not match, :class:`~.ChallengeParseError` is raised and :meth:`done`
    stays false; the authentication must then be considered failed, even if
    the server claims success.
    """

    def __init__(
            self,
            *args: typing.Any,
            hashfun: SCRAMHash = SCRAMHash.SHA256,
            **kwargs: typing.Any) -> None:
        super().__init__(*args, **kwargs)
        self.hashfun = hashfun
        self.mechanism = hashfun.mechanism
        self.enforce_minimum_iteration_count = self.get_property(
            "enforce_minimum_iteration_count",
            True,
        )

        cnonce = self.get_property("cnonce")
        if cnonce is None:
            cnonce = utils.generate_nonce(
                self.get_property("nonce_length", 15)
            )
        self._cnonce = utils.to_bytes(cnonce)
        if b"," in self._cnonce:
            raise self._error(
                common.ConfigurationError,
                "client nonce must not contain a comma")

        self._state = SCRAMState.INITIAL
        self._client_first_bare = None  # type: typing.Optional[bytes]
        self._server_signature = None  # type: typing.Optional[bytes]

    @classmethod
    def for_hash(
            cls,
            hashfun: SCRAMHash,
            ) -> typing.Callable[..., "SCRAM"]:
        """
        Return a factory for :class:`SCRAM` authenticators bound to
        `hashfun`, for use with :meth:`~.Registry.add`.
        """
        return functools.partial(cls, hashfun=hashfun)

    @classmethod
    def parse_message(
            cls,
            msg: bytes,
            ) -> typing.Generator[typing.Tuple[bytes, bytes], None, None]:
        parts = (
            part
            for part in msg.split(b",")
            if part)

        for part in parts:
            key, _, value = part.partition(b"=")
            if len(key) > 1 or key == b"m":
                raise common.DataFormatError(
                    "SCRAM protocol violation / unknown future extension")
            if key == b"n" or key == b"a":
                value = value.replace(b"=2C", b",").replace(b"=3D", b"=")

            yield key, value

    def _parse(self, msg: bytes) -> typing.Dict[bytes, bytes]:
        try:
            parsed = dict(self.parse_message(msg))
        except common.DataFormatError as exc:
            raise self._error(common.DataFormatError, exc.text) from None

        if b"e" in parsed:
            raise self._error(
                common.ChallengeParseError,
                "server reported error: {}".format(
                    parsed[b"e"].decode("utf-8", errors="replace")
                ))

        return parsed

    def _prepare(
            self,
            name: str,
            value: typing.Any,
            allow_unassigned: bool) -> bytes:
        try:
            if isinstance(value, bytes):
                value = value.decode("utf-8")
            return stringprep.saslprep(
                value or "",
                allow_unassigned=allow_unassigned,
            ).encode("utf-8")
        except ValueError as exc:
            raise self._error(
                common.ConfigurationError,
                "{} rejected by SASLprep: {}".format(name, exc)
            ) from None

    def supports_initial_response(self) -> bool:
        return True

    def _client_first(self) -> bytes:
        logger.info("attempting %s mechanism (using %s hashfun)",
                    self.mechanism,
                    self.hashfun.value.hashfun_name)

        encoded_username = self._prepare("authcid", self.authcid, True)
        self._client_first_bare = (
            b"n=" + escape_saslname(encoded_username) +
            b",r=" + self._cnonce
        )

        gs2_header = b"n,"
        authzid = utils.to_bytes(self.authzid)
        if authzid:
            gs2_header += b"a=" + escape_saslname(authzid)
        gs2_header += b","

        self._state = SCRAMState.AWAIT_FIRST
        return gs2_header + self._client_first_bare

    def _client_final(self, payload: bytes) -> bytes:
        parsed_payload = self._parse(payload)

        try:
            iteration_count = int(parsed_payload[b"i"])
            nonce = parsed_payload[b"r"]
            salt = base64.b64decode(parsed_payload[b"s"])
        except (ValueError, KeyError, binascii.Error):
            raise self._error(
                common.DataFormatError,
                "malformed server message: {!r}".format(payload),
            ) from None

        if iteration_count < 1:
            raise self._error(
                common.DataFormatError,
                "iteration count must be positive, got {}".format(
                    iteration_count))

        if not nonce.startswith(self._cnonce):
            raise self._error(
                common.ChallengeParseError,
                "server nonce doesn't fit our nonce")

        minimum_iteration_count = self.hashfun.value.minimum_iteration_count
        if (self.enforce_minimum_iteration_count and
                iteration_count < minimum_iteration_count):
            raise self._error(
                common.ChallengeParseError,
                "minimum iteration count violated "
                "({} is less than {})".format(
                    iteration_count,
                    minimum_iteration_count,
                )
            )

        encoded_password = self._prepare(
            "credentials", self.credentials, False)

        t0 = time.time()

        salted_password = pbkdf2(
            self.hashfun.value.hashfun_name,
            encoded_password,
            salt,
            iteration_count,
            self.hashfun.digest_size)

        logger.debug("pbkdf2 timing: %f seconds", time.time() - t0)

        client_key = self.hashfun.hmac(salted_password, b"Client Key")
        stored_key = self.hashfun.new(client_key).digest()

        reply = b"c=biws,r=" + nonce

        auth_message = b",".join((
            self._client_first_bare,
            payload,
            reply,
        ))

        client_proof = utils.xor_bytes(
            self.hashfun.hmac(stored_key, auth_message),
            client_key)

        server_key = self.hashfun.hmac(salted_password, b"Server Key")
        self._server_signature = self.hashfun.hmac(server_key, auth_message)

        logger.debug("response generation time: %f seconds", time.time() - t0)

        return reply + b",p=" + base64.b64encode(client_proof)

    def _verify_server_final(self, payload: bytes) -> bytes:
        parsed_payload = self._parse(payload)

        try:
            server_signature = base64.b64decode(parsed_payload[b"v"])
        except (KeyError, ValueError, binascii.Error):
            raise self._error(
                common.DataFormatError,
                "malformed server message: {!r}".format(payload),
            ) from None

        if not hmac.compare_digest(server_signature, self._server_signature):
            raise self._error(
                common.ChallengeParseError,
                "bad server signature")

        return b""

    def process(
            self,
            challenge: typing.Optional[bytes],
            ) -> typing.Optional[bytes]:
        if self._state == SCRAMState.INITIAL:
            if challenge:
                raise self._error(
                    common.DataFormatError,
                    "SCRAM is client-first; expected an empty challenge")
            return self._client_first()

        if challenge is None:
            raise self._error(
                common.DataFormatError,
                "expected a challenge from the server")

        if self._state == SCRAMState.AWAIT_FIRST:
            self._state = SCRAMState.FAILED
            response = self._client_final(challenge)
            self._state = SCRAMState.AWAIT_FINAL
            return response

        if self._state == SCRAMState.AWAIT_FINAL:
            self._state = SCRAMState.FAILED
            response = self._verify_server_final(challenge)
            self._state = SCRAMState.DONE
            return response

        raise self._error(
            common.ChallengeParseError,
            "unexpected challenge {!r}".format(challenge))

    def done(self) -> bool:
        return self._state == SCRAMState.DONE
