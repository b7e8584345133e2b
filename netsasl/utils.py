########################################################################
# File name: utils.py
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
import operator
import random


_system_random = random.SystemRandom()


def xor_bytes(a, b):
    """
    Calculate the byte wise exclusive of of two :class:`bytes` objects
    of the same length.
    """
    assert len(a) == len(b)
    return bytes(map(operator.xor, a, b))


def to_bytes(value, encoding="utf-8"):
    """
    Return `value` encoded with `encoding` if it is a :class:`str`;
    :class:`bytes` are passed through and :data:`None` becomes the empty
    byte string.
    """
    if value is None:
        return b""
    if isinstance(value, str):
        return value.encode(encoding)
    return bytes(value)


def generate_nonce(length):
    """
    Return `length` random bytes from the system random source, base64
    encoded.
    """
    return base64.b64encode(_system_random.getrandbits(
        length * 8
    ).to_bytes(
        length, "little"
    ))
