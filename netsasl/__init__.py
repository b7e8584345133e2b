########################################################################
# File name: __init__.py
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
"""
Using SASL in a protocol
========================

:mod:`netsasl` implements the client side of SASL mechanisms as synchronous
state machines. It does not do any I/O: the protocol implementation (IMAP,
SMTP, LDAP, XMPP, ...) is responsible for announcing the mechanism, for
transporting challenges and responses and for their transport encoding
(usually base64).

After choosing a mechanism from those offered by the server, build an
authenticator for it and feed it the decoded challenges::

    auth = netsasl.authenticator("SCRAM-SHA-256", "user", "pencil")
    if auth.supports_initial_response():
        response = auth.process(None)
        # send the AUTHENTICATE command with the initial response
    else:
        # send the AUTHENTICATE command without a response
    while not auth.done():
        # receive and decode the next challenge
        try:
            response = auth.process(challenge)
        except netsasl.SASLError:
            # abort the exchange; authentication failed
        # encode and send the response

Authenticators must not be re-used: build a new one for every attempt.

The mechanisms in the :func:`default_registry` are:

.. autosummary::

   PLAIN
   LOGIN
   CRAM_MD5
   DIGEST_MD5
   SCRAM

:class:`ANONYMOUS` is available, but has to be added to a registry
explicitly.

Authenticator interface
=======================

.. autoclass:: Authenticator

Registry
========

.. autoclass:: Registry

.. autofunction:: default_registry

.. autofunction:: authenticator

.. autofunction:: add_authenticator

SASL mechanisms
===============

.. autoclass:: PLAIN

.. autoclass:: LOGIN

.. autoclass:: ANONYMOUS

.. autoclass:: CRAM_MD5

.. autoclass:: DIGEST_MD5

.. autoclass:: SCRAM(authcid, credentials, authzid=None, *, hashfun=SCRAMHash.SHA256, **options)

.. autoclass:: SCRAMHash

Exception classes
=================

.. autoclass:: SASLError

.. autoclass:: ConfigurationError

.. autoclass:: UnknownMechanismError

.. autoclass:: DataFormatError

.. autoclass:: ChallengeParseError

Version information
===================

.. autodata:: __version__

.. autodata:: version_info
"""  # NOQA
import typing

from .common import (  # noqa:F401
    ChallengeParseError,
    ConfigurationError,
    DataFormatError,
    SASLError,
    UnknownMechanismError,
)

from .statemachine import (  # noqa:F401
    Authenticator,
)

from .registry import (  # noqa:F401
    Registry,
    default_registry,
)

from .scram import (  # noqa:F401
    SCRAM,
    SCRAMHash,
)

from .plain import (  # noqa:F401
    PLAIN,
)

from .login import (  # noqa:F401
    LOGIN,
)

from .anonymous import (  # noqa:F401
    ANONYMOUS,
)

from .cram_md5 import (  # noqa:F401
    CRAM_MD5,
)

from .digest_md5 import (  # noqa:F401
    DIGEST_MD5,
    NonceCounter,
)

from .version import version, __version__, version_info  # noqa:F401


def authenticator(
        mechanism: str,
        *args: typing.Any,
        **kwargs: typing.Any) -> Authenticator:
    """
    Build an authenticator for `mechanism` from the
    :func:`default_registry`. See :meth:`Registry.build`.
    """
    return default_registry().build(mechanism, *args, **kwargs)


def add_authenticator(mechanism: str, factory: typing.Any) -> None:
    """
    Add `factory` for `mechanism` to the :func:`default_registry`. See
    :meth:`Registry.add`.
    """
    default_registry().add(mechanism, factory)


#: The imported :mod:`netsasl` version as a tuple.
#:
#: The components of the tuple are, in order: `major version`, `minor version`,
#: `patch level`, and `pre-release identifier`.
version_info = version_info

#: The imported :mod:`netsasl` version as a string.
#:
#: The version number is dot-separated; in pre-release or development versions,
#: the version number is followed by a hypen-separated pre-release identifier.
__version__ = __version__
