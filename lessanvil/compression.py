"""
Chunk compression schemes.

Every chunk in a region file names the scheme its payload is compressed with in a single byte.
decode() and encode() look the scheme up in a small table of codecs; anything not in the table is unsupported.
"""
import gzip
import zlib

from lessanvil.shared import UnsupportedCompression, DecompressionFailed

#Compression types
COMPRESSION_GZIP = 1
COMPRESSION_ZLIB = 2
COMPRESSION_NONE = 3

#Set on the compression byte when the chunk's payload lives in an external .c.<x>.<z>.mcc file.
COMPRESSION_EXTERNAL = 128

COMPRESSION_NAMES = {
    COMPRESSION_GZIP: "gzip",
    COMPRESSION_ZLIB: "zlib",
    COMPRESSION_NONE: "none"
}

def _inflate( scheme, data, wbits ):
    """
    Decompresses a complete zlib or gzip stream.
    Raises DecompressionFailed if the stream is corrupt, ends early, or is followed by more data.
    """
    d = zlib.decompressobj( wbits )
    try:
        out = d.decompress( data )
    except zlib.error as e:
        raise DecompressionFailed( scheme, str( e ) ) from e
    if not d.eof:
        raise DecompressionFailed( scheme, "stream is truncated" )
    if d.unused_data:
        raise DecompressionFailed( scheme, "{:d} trailing bytes after end of stream".format( len( d.unused_data ) ) )
    return out

def _decodeGzip( data ):
    return _inflate( COMPRESSION_GZIP, data, 16 + zlib.MAX_WBITS )

def _decodeZlib( data ):
    return _inflate( COMPRESSION_ZLIB, data, zlib.MAX_WBITS )

def _encodeGzip( data ):
    #mtime is fixed so the same data always compresses to the same bytes
    return gzip.compress( data, mtime=0 )

#( decode, encode ) indexed by scheme
_CODECS = {
    COMPRESSION_GZIP: ( _decodeGzip, _encodeGzip    ),
    COMPRESSION_ZLIB: ( _decodeZlib, zlib.compress ),
    COMPRESSION_NONE: ( bytes,       bytes          )
}

def decode( scheme, data ):
    """
    Returns the uncompressed contents of data, which is compressed with the given scheme.
    Raises UnsupportedCompression for unknown schemes (including chunks stored externally),
    and DecompressionFailed if data isn't exactly one complete, valid stream.
    """
    codec = _CODECS.get( scheme )
    if codec is None:
        raise UnsupportedCompression( scheme )
    return codec[0]( data )

def encode( scheme, data ):
    """
    Compresses data with the given scheme and returns it.
    Raises UnsupportedCompression for unknown schemes.
    """
    codec = _CODECS.get( scheme )
    if codec is None:
        raise UnsupportedCompression( scheme )
    return codec[1]( data )

def reencodeScheme( scheme ):
    """
    Returns the scheme a chunk originally compressed with scheme should be re-encoded with.
    Uncompressed chunks stay uncompressed; everything else is stored as zlib, the format Minecraft writes by default.
    """
    if scheme == COMPRESSION_NONE:
        return COMPRESSION_NONE
    return COMPRESSION_ZLIB
