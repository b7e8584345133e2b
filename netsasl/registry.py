########################################################################
# File name: registry.py
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
import inspect
import logging
import threading
import typing

from . import (
    common,
    cram_md5,
    digest_md5,
    login,
    plain,
    scram,
    statemachine,
)


logger = logging.getLogger(__name__)


AuthenticatorFactory = typing.Callable[..., statemachine.Authenticator]


def _accepts_option(factory: AuthenticatorFactory, name: str) -> bool:
    try:
        parameters = inspect.signature(factory).parameters.values()
    except (TypeError, ValueError):
        return True
    return any(
        parameter.kind == inspect.Parameter.VAR_KEYWORD or
        parameter.name == name
        for parameter in parameters
    )


class Registry:
    """
    Mapping of SASL mechanism names to the factories (usually
    :class:`~.Authenticator` subclasses) implementing them.

    Mechanism names are case-insensitive. Registries are cheap; create a
    private one to restrict or extend the set of mechanisms without touching
    the :func:`default_registry`.

    Mutating a registry while other threads build authenticators from it
    requires external locking.

    .. automethod:: add

    .. automethod:: remove

    .. automethod:: build

    .. autoattribute:: mechanisms
    """

    def __init__(self) -> None:
        super().__init__()
        self._factories = {}  # type: typing.Dict[str, AuthenticatorFactory]
        self.nonce_counter = digest_md5.NonceCounter()

    def add(self, mechanism: str, factory: AuthenticatorFactory) -> None:
        """
        Register `factory` for `mechanism`, replacing an existing entry.

        `factory` is called with ``(authcid, credentials, authzid,
        **options)`` and must return an :class:`~.Authenticator`.
        """
        self._factories[mechanism.upper()] = factory

    def remove(self, mechanism: str) -> None:
        """
        Remove the entry for `mechanism`. Nothing happens if there is none.
        This can be used to prohibit the use of default mechanisms.
        """
        self._factories.pop(mechanism.upper(), None)

    def __contains__(self, mechanism: str) -> bool:
        return mechanism.upper() in self._factories

    @property
    def mechanisms(self) -> typing.List[str]:
        """
        The sorted list of registered mechanism names.
        """
        return sorted(self._factories)

    def build(
            self,
            mechanism: str,
            authcid: typing.Optional[common.Credential] = None,
            credentials: typing.Optional[common.Credential] = None,
            authzid: typing.Optional[common.Credential] = None,
            **options: typing.Any) -> statemachine.Authenticator:
        """
        Create a fresh authenticator for `mechanism`.

        The arguments are passed to the factory; see
        :class:`~.Authenticator`. A ``nonce_counter`` option pointing to the
        counter of this registry is added unless given explicitly or the
        factory accepts neither ``nonce_counter`` nor arbitrary keyword
        arguments.

        :raises UnknownMechanismError: if no factory is registered for
            `mechanism`.
        """
        mechanism = mechanism.upper()
        try:
            factory = self._factories[mechanism]
        except KeyError:
            raise common.UnknownMechanismError(
                mechanism=mechanism,
            ) from None

        logger.debug("building %s authenticator", mechanism)
        if _accepts_option(factory, "nonce_counter"):
            options.setdefault("nonce_counter", self.nonce_counter)
        return factory(authcid, credentials, authzid, **options)


def _populate(registry: Registry) -> Registry:
    registry.add("PLAIN", plain.PLAIN)
    registry.add("LOGIN", login.LOGIN)
    registry.add("DIGEST-MD5", digest_md5.DIGEST_MD5)
    registry.add("CRAM-MD5", cram_md5.CRAM_MD5)
    for hashfun in scram.SCRAMHash:
        registry.add(hashfun.mechanism, scram.SCRAM.for_hash(hashfun))
    return registry


_default_registry = None  # type: typing.Optional[Registry]
_default_registry_lock = threading.Lock()


def default_registry() -> Registry:
    """
    Return the process-wide :class:`Registry`.

    It is created on first use and contains ``PLAIN``, ``LOGIN``,
    ``DIGEST-MD5``, ``CRAM-MD5`` and ``SCRAM-SHA-1``, ``-224``, ``-256``,
    ``-384`` and ``-512``. Changes to it affect every user in the process;
    prefer a private :class:`Registry` to restrict the mechanisms.
    """
    global _default_registry
    if _default_registry is None:
        with _default_registry_lock:
            if _default_registry is None:
                _default_registry = _populate(Registry())
    return _default_registry
