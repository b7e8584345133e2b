########################################################################
# File name: statemachine.py
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
import abc
import typing

from . import common


class Authenticator(metaclass=abc.ABCMeta):
    """
    Client side state machine of a single SASL exchange. Subclasses implement
    a specific SASL mechanism.

    :param authcid: The authentication identity, usually a user name.
    :param credentials: The secret belonging to `authcid`, usually a
        password.
    :param authzid: The authorization identity to act as. If it is not given
        (or empty), the server derives it from the credentials.
    :param property_provider: Callable which is asked for properties which
        have not been passed explicitly (see :meth:`get_property`).

    The remaining keyword arguments are options. The standard options are
    ``host``, ``port``, ``realm`` and ``service`` (``"host"`` if not given);
    mechanisms may define more. Options which are not understood by the
    mechanism are ignored.

    Instances must only be used for a single authentication exchange. The
    protocol implementation feeds the (decoded) challenges of the server into
    :meth:`process` and sends the returned responses, until :meth:`done`
    returns true or an exception is raised. Any :class:`~.SASLError` raised
    by :meth:`process` means that the exchange has failed; a new instance is
    needed to retry.

    .. automethod:: supports_initial_response

    .. automethod:: process

    .. automethod:: done

    .. automethod:: get_property
    """

    #: The SASL mechanism name implemented by the class.
    mechanism = None  # type: typing.Optional[str]

    _option_defaults = {
        "service": "host",
    }

    def __init__(
            self,
            authcid: typing.Optional[common.Credential] = None,
            credentials: typing.Optional[common.Credential] = None,
            authzid: typing.Optional[common.Credential] = None,
            *,
            property_provider: typing.Optional[
                common.PropertyProvider] = None,
            **options: typing.Any):
        super().__init__()
        self._properties = dict(options)
        self._properties.update(
            authcid=authcid,
            credentials=credentials,
            authzid=authzid,
        )
        self._property_provider = property_provider

    def get_property(
            self,
            name: str,
            default: typing.Any = None) -> typing.Any:
        """
        Return the value of the property `name`.

        An explicitly passed (non-:data:`None`) argument or option wins. If
        there is none, the property provider is asked. If it does not know
        the property either, the mechanism default (or `default`) is
        returned.
        """
        value = self._properties.get(name)
        if value is None and self._property_provider is not None:
            value = self._property_provider(name)
        if value is None:
            value = self._option_defaults.get(name, default)
        return value

    @property
    def authcid(self) -> typing.Optional[common.Credential]:
        return self.get_property("authcid")

    @property
    def credentials(self) -> typing.Optional[common.Credential]:
        return self.get_property("credentials")

    @property
    def authzid(self) -> typing.Optional[common.Credential]:
        return self.get_property("authzid")

    def supports_initial_response(self) -> bool:
        """
        Return true if the mechanism can send a response before the server
        sent a challenge. :meth:`process` may then be called with
        :data:`None` to obtain the initial response.
        """
        return False

    @abc.abstractmethod
    def process(
            self,
            challenge: typing.Optional[bytes],
            ) -> typing.Optional[bytes]:
        """
        Process the decoded `challenge` sent by the server and return the
        decoded response.

        Transport encoding (such as base64 in IMAP) must be handled by the
        caller. An empty or :data:`None` return value means that there is
        nothing to send.

        Calling this method after :meth:`done` returned true is not
        supported.
        """

    @abc.abstractmethod
    def done(self) -> bool:
        """
        Return true if the exchange is over and :meth:`process` must not be
        called anymore.
        """

    def _error(
            self,
            exc_class: typing.Type[common.SASLError],
            text: str) -> common.SASLError:
        return exc_class(text, mechanism=self.mechanism)
