########################################################################
# File name: digest_md5.py
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
import collections
import enum
import hashlib
import hmac
import logging
import re
import threading
import typing

from . import common, statemachine, utils


logger = logging.getLogger(__name__)


_PARAM_RE = re.compile(
    rb'(?:\s*,)?\s*([\w-]+)=("(?:[^\\"]+|\\.)*"|[^,]+)\s*'
)
_UNQUOTE_RE = re.compile(rb"\\(.)")

_QUOTED_FIELDS = frozenset([
    "username", "authzid", "realm", "nonce", "cnonce", "digest-uri", "qop",
])


class NonceCounter:
    """
    Thread-safe table of nonce counts (the ``nc`` value of ``DIGEST-MD5``).

    Each call to :meth:`next` for a nonce returns a number one higher than
    the previous call for the same nonce, starting at 1. A
    :class:`~.Registry` shares one counter between all the authenticators
    it builds.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts = collections.Counter()  # type: typing.Counter[bytes]

    def next(self, nonce: bytes) -> int:
        with self._lock:
            self._counts[nonce] += 1
            return self._counts[nonce]


class DigestMD5Stage(enum.Enum):
    STAGE_ONE = "stage-one"
    STAGE_TWO = "stage-two"
    DONE = "done"
    FAILED = "failed"


def _unquote(value: bytes) -> bytes:
    if len(value) < 2 or not value.startswith(b'"') \
            or not value.endswith(b'"'):
        return value
    return _UNQUOTE_RE.sub(rb"\1", value[1:-1])


def _quote(value: bytes) -> bytes:
    return b'"' + value.replace(b"\\", b"\\\\").replace(b'"', b'\\"') + b'"'


def parse_challenge(
        challenge: bytes,
        ) -> typing.Dict[str, typing.Union[bytes, typing.List[bytes]]]:
    """
    Parse a ``DIGEST-MD5`` challenge into a dictionary mapping the keys to
    the (unquoted) values.

    ``realm`` and ``qop`` map to lists: ``realm`` may occur multiple times
    and ``qop`` is a comma separated list inside the quotes. Raise
    :class:`~.DataFormatError` if the challenge cannot be parsed completely.
    """
    params = {
        "realm": [],
    }  # type: typing.Dict[str, typing.Any]

    pos = 0
    while pos < len(challenge):
        match = _PARAM_RE.match(challenge, pos)
        if match is None:
            break
        pos = match.end()
        key = match.group(1).decode("ascii").lower()
        value = _unquote(match.group(2).strip())
        logger.debug("%s: %r", key, value)

        if key == "realm":
            params["realm"].append(value)
        elif key == "qop":
            params["qop"] = [
                item.strip()
                for item in value.split(b",")
            ]
        elif key in params:
            raise common.DataFormatError(
                "duplicate {} in challenge".format(key),
                mechanism=DIGEST_MD5.mechanism)
        else:
            params[key] = value

    if challenge[pos:].strip():
        raise common.DataFormatError(
            "bad challenge: {!r}".format(challenge),
            mechanism=DIGEST_MD5.mechanism)

    return params


def _md5_hex(data: bytes) -> bytes:
    return hashlib.md5(data).hexdigest().encode("ascii")


def compute_response(
        *,
        username: bytes,
        realm: bytes,
        password: bytes,
        nonce: bytes,
        cnonce: bytes,
        nc: bytes,
        qop: bytes,
        digest_uri: bytes,
        authzid: bytes = b"",
        method: bytes = b"AUTHENTICATE") -> bytes:
    """
    Compute the ``DIGEST-MD5`` response value (:rfc:`2831`, section 2.1.2.1).

    With an empty `method`, the value of ``rspauth`` expected from the
    server is computed instead.
    """
    urp_hash = hashlib.md5(b":".join((username, realm, password))).digest()

    a1 = b":".join((urp_hash, nonce, cnonce))
    if authzid:
        a1 += b":" + authzid

    a2 = method + b":" + digest_uri
    if qop in (b"auth-int", b"auth-conf"):
        a2 += b":" + b"0" * 32

    return _md5_hex(b":".join((
        _md5_hex(a1),
        nonce,
        nc,
        cnonce,
        qop,
        _md5_hex(a2),
    )))


class DIGEST_MD5(statemachine.Authenticator):
    """
    The ``DIGEST-MD5`` SASL mechanism (see :rfc:`2831`).

    .. warning::

       ``DIGEST-MD5`` has been moved to historic by :rfc:`6331` and must not
       be relied on for security. It is only provided for compatibility with
       existing servers.

    Only the ``auth`` quality of protection is supported. Additional options:

    ``cnonce``
       The client nonce to use, instead of a random one.

    ``digest_uri``
       The ``digest-uri`` to send; defaults to ``"imap/" + realm``.

    ``nonce_counter``
       A :class:`NonceCounter` shared between authenticators; the
       :class:`~.Registry` passes its own. Without it, a private counter is
       used.

    ``verify_rspauth``
       If true, the ``rspauth`` value in the second challenge of the server
       is verified and a mismatch raises :class:`~.ChallengeParseError`.
       By default, any second challenge containing ``rspauth=`` is accepted
       and a mismatch is only logged.
    """

    mechanism = "DIGEST-MD5"

    def __init__(self, *args: typing.Any, **kwargs: typing.Any) -> None:
        super().__init__(*args, **kwargs)
        self._stage = DigestMD5Stage.STAGE_ONE
        self._nonce_counter = self.get_property("nonce_counter")
        if self._nonce_counter is None:
            self._nonce_counter = NonceCounter()
        self._expected_rspauth = None  # type: typing.Optional[bytes]

    def _encode(self, name: str, value: typing.Any, encoding: str) -> bytes:
        try:
            return utils.to_bytes(value, encoding)
        except UnicodeError:
            raise self._error(
                common.ConfigurationError,
                "{} is not encodable as {}".format(name, encoding)
            ) from None

    def _choose_realm(self, realms: typing.List[bytes],
                      encoding: str) -> bytes:
        if realms:
            return realms[0]
        realm = self.get_property("realm")
        if realm is None:
            realm = self.get_property("host")
        return self._encode("realm", realm, encoding)

    def _stage_one(self, challenge: bytes) -> bytes:
        params = parse_challenge(challenge)

        qop = params.get("qop")
        if qop is None or b"auth" not in qop:
            raise self._error(
                common.DataFormatError,
                "server does not support qop=auth (qop = {!r})".format(qop))

        nonce = params.get("nonce")
        if not nonce:
            raise self._error(common.DataFormatError, "nonce not given")

        algorithm = params.get("algorithm")
        if algorithm is not None and algorithm.lower() != b"md5-sess":
            raise self._error(
                common.DataFormatError,
                "unsupported algorithm {!r}".format(algorithm))

        charset = params.get("charset")
        if charset is not None and charset.lower() == b"utf-8":
            encoding = "utf-8"
        else:
            encoding = "iso-8859-1"

        realm = self._choose_realm(params["realm"], encoding)
        cnonce = self.get_property("cnonce")
        if cnonce is None:
            cnonce = utils.generate_nonce(15)
        cnonce = utils.to_bytes(cnonce)

        digest_uri = self.get_property("digest_uri")
        if digest_uri is None:
            digest_uri = b"imap/" + realm
        digest_uri = utils.to_bytes(digest_uri)

        response = collections.OrderedDict([
            ("nonce", nonce),
            ("username", self._encode("authcid", self.authcid, encoding)),
            ("realm", realm),
            ("cnonce", cnonce),
            ("digest-uri", digest_uri),
            ("qop", b"auth"),
            ("maxbuf", b"65535"),
            ("nc", "{:08d}".format(
                self._nonce_counter.next(nonce)).encode("ascii")),
            ("charset", charset),
            ("authzid", self._encode("authzid", self.authzid, encoding)),
        ])
        if not response["authzid"]:
            del response["authzid"]
        if response["charset"] is None:
            del response["charset"]

        digest_args = dict(
            username=response["username"],
            realm=realm,
            password=self._encode("credentials", self.credentials, encoding),
            nonce=nonce,
            cnonce=cnonce,
            nc=response["nc"],
            qop=response["qop"],
            digest_uri=digest_uri,
            authzid=response.get("authzid", b""),
        )
        response["response"] = compute_response(**digest_args)
        self._expected_rspauth = compute_response(method=b"", **digest_args)

        return b",".join(
            key.encode("ascii") + b"=" + (
                _quote(value) if key in _QUOTED_FIELDS else value
            )
            for key, value in response.items()
        )

    def _stage_two(self, challenge: typing.Optional[bytes]) -> bytes:
        if challenge is None or b"rspauth=" not in challenge:
            raise self._error(
                common.ChallengeParseError,
                "expected rspauth, got {!r}".format(challenge))

        try:
            rspauth = parse_challenge(challenge).get("rspauth", b"")
        except common.DataFormatError:
            # unparseable rspauth counts as a mismatch
            rspauth = b""

        if not hmac.compare_digest(rspauth.lower(), self._expected_rspauth):
            if self.get_property("verify_rspauth", False):
                raise self._error(
                    common.ChallengeParseError,
                    "bad server rspauth")
            logger.warning("DIGEST-MD5 rspauth of the server does not match;"
                           " accepting it anyway")

        return b""

    def process(
            self,
            challenge: typing.Optional[bytes],
            ) -> typing.Optional[bytes]:
        if self._stage == DigestMD5Stage.STAGE_ONE:
            logger.info("attempting DIGEST-MD5 mechanism")
            if challenge is None:
                raise self._error(
                    common.DataFormatError,
                    "DIGEST-MD5 requires a challenge from the server")
            self._stage = DigestMD5Stage.FAILED
            response = self._stage_one(challenge)
            self._stage = DigestMD5Stage.STAGE_TWO
            return response

        if self._stage == DigestMD5Stage.STAGE_TWO:
            self._stage = DigestMD5Stage.FAILED
            response = self._stage_two(challenge)
            self._stage = DigestMD5Stage.DONE
            return response

        raise self._error(
            common.ChallengeParseError,
            "unexpected challenge {!r}".format(challenge))

    def done(self) -> bool:
        return self._stage == DigestMD5Stage.DONE
