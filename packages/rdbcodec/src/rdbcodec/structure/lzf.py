# packages/rdbcodec/src/rdbcodec/structure/lzf.py
from __future__ import annotations

from ..errors import MalformedEncoding

__all__ = ["lzf_decompress"]


def lzf_decompress(data: bytes, expected_len: int) -> bytes:
    """
    Décompresse un bloc LZF (chaînes compressées du format RDB).

    Octet de contrôle `c` :
      - `c < 32`  → littéral de `c + 1` octets copiés tels quels ;
      - sinon     → back-reference de longueur `(c >> 5) + 2`
                    (si `c >> 5 == 7`, l'octet suivant s'ajoute à la longueur),
                    offset `((c & 0x1f) << 8 | octet suivant) + 1` en arrière
                    de la position de sortie courante.

    Les copies qui se chevauchent (offset < longueur) se font octet par octet.

    Exceptions
    ----------
    MalformedEncoding si une référence sort de la sortie déjà produite, si un
    littéral dépasse l'entrée, ou si la taille finale diffère de `expected_len`.
    """
    out = bytearray()
    ip = 0
    n = len(data)
    while ip < n:
        ctrl = data[ip]
        ip += 1
        if ctrl < 32:
            run = ctrl + 1
            if ip + run > n:
                raise MalformedEncoding("lzf: literal run past end of input")
            out += data[ip:ip + run]
            ip += run
            continue

        length = ctrl >> 5
        if length == 7:
            if ip >= n:
                raise MalformedEncoding("lzf: missing length extension byte")
            length += data[ip]
            ip += 1
        if ip >= n:
            raise MalformedEncoding("lzf: missing back-reference offset byte")
        ref = len(out) - (((ctrl & 0x1F) << 8) | data[ip]) - 1
        ip += 1
        length += 2
        if ref < 0:
            raise MalformedEncoding("lzf: back-reference before start of output")
        if ref + length <= len(out):
            out += out[ref:ref + length]
        else:
            for i in range(length):
                out.append(out[ref + i])

    if len(out) != expected_len:
        raise MalformedEncoding(
            f"lzf: expanded to {len(out)} bytes, expected {expected_len}"
        )
    return bytes(out)
