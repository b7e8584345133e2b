########################################################################
# File name: plain.py
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

from . import common, statemachine, utils


logger = logging.getLogger(__name__)


class PLAIN(statemachine.Authenticator):
    """
    The password-based ``PLAIN`` SASL mechanism (see :rfc:`4616`).

    .. warning::

       This is generally unsafe over unencrypted connections and should not be
       used there. Exclusion of the ``PLAIN`` mechanism over unsafe connections
       is out of scope for :mod:`netsasl` and needs to be handled by the
       protocol implementation!

    The single response is ``authzid NUL authcid NUL credentials``. None of
    the three values may contain a NUL byte; this is checked on construction
    (and again for values obtained from the property provider).
    """

    mechanism = "PLAIN"

    def __init__(self, *args: typing.Any, **kwargs: typing.Any) -> None:
        super().__init__(*args, **kwargs)
        self._done = False
        for name in ("authzid", "authcid", "credentials"):
            self._encode_field(name, self._properties[name])

    def _encode_field(self, name: str, value: typing.Any) -> bytes:
        try:
            encoded = utils.to_bytes(value)
        except UnicodeError:
            raise self._error(
                common.ConfigurationError,
                "{} is not encodable as UTF-8".format(name)
            ) from None
        if b"\0" in encoded:
            raise self._error(
                common.ConfigurationError,
                "NUL byte in {} is disallowed".format(name))
        return encoded

    def supports_initial_response(self) -> bool:
        return True

    def process(
            self,
            challenge: typing.Optional[bytes],
            ) -> typing.Optional[bytes]:
        logger.info("attempting PLAIN mechanism")
        response = b"\0".join(
            self._encode_field(name, self.get_property(name))
            for name in ("authzid", "authcid", "credentials")
        )
        self._done = True
        return response

    def done(self) -> bool:
        return self._done
