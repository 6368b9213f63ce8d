import sys
from struct import calcsize, Struct
from array import array

#Tag Types
#A TAG_End is a nameless tag that terminates TAG_Compound and is the default tagType for an empty TAG_List.
#It has no payload, and its named tag header is simply b"\0" because it is nameless (and therefore lacks any name-related entries).
TAG_END        = 0
TAG_BYTE       = 1  #A TAG_Byte payload stores a 1-byte signed integer.
TAG_SHORT      = 2  #A TAG_Short payload stores a 2-byte big-endian signed integer.
TAG_INT        = 3  #A TAG_Int payload stores a 4-byte big-endian signed integer.
TAG_LONG       = 4  #A TAG_Long payload stores an 8-byte big-endian signed integer.
TAG_FLOAT      = 5  #A TAG_Float payload stores a big-endian float (a 4-byte IEEE 754-2008, aka binary32).
TAG_DOUBLE     = 6  #A TAG_Double payload stores a big-endian double (an 8-byte IEEE 754-2008, aka binary64).
TAG_BYTE_ARRAY = 7  #A TAG_Byte_Array stores bytes of an unspecified format. The payload consists of the length of the array (a 4-byte big-endian signed integer), followed by exactly that many bytes.
TAG_STRING     = 8  #A TAG_String stores a modified UTF-8 encoded string. It starts with the length of the encoded string _in bytes_ (a 2-byte big-endian unsigned integer), followed by the encoded bytes.
TAG_LIST       = 9  #A TAG_List stores several tags of the same type. The payload consists of a single byte encoding the tagType, followed by the length of the list (a 4-byte big-endian signed integer), followed by that many payloads of the specified tag.
TAG_COMPOUND   = 10 #A TAG_Compound stored several uniquely-named tags of any type. The payload consists of several pairs of named tag headers + tag payloads and is terminated by a TAG_End (null byte).
TAG_INT_ARRAY  = 11 #A TAG_Int_Array's payload consists of the length of the array (a 4-byte big-endian signed integer) followed by that many 4-byte big-endian signed integers.
TAG_LONG_ARRAY = 12 #A TAG_Long_Array's payload consists of the length of the array (a 4-byte big-endian signed integer) followed by that many 8-byte big-endian signed integers.

#Internal names of tags (indexed by tag type) as defined by the NBT format
TAG_NAMES = (
    "TAG_End",
    "TAG_Byte",
    "TAG_Short",
    "TAG_Int",
    "TAG_Long",
    "TAG_Float",
    "TAG_Double",
    "TAG_Byte_Array",
    "TAG_String",
    "TAG_List",
    "TAG_Compound",
    "TAG_Int_Array",
    "TAG_Long_Array"
)

#Total number of tags supported by this version of the library.
TAG_COUNT = len( TAG_NAMES )

#Datatypes for signed and unsigned 4-byte integers
#We /need/ a 4-byte integer type: select one here, or fail if one is not available.
if calcsize( "i" ) == 4:
    SIGNED_INT_TYPE   = "i"
    UNSIGNED_INT_TYPE = "I"
elif calcsize( "l" ) == 4:
    SIGNED_INT_TYPE   = "l"
    UNSIGNED_INT_TYPE = "L"
else:
    raise OSError( "No 4-byte datatype available." )

#"q" is guaranteed to be 8 bytes.
SIGNED_LONG_TYPE = "q"

#array assumes native-endianness; big-endian data has to be swapped on little-endian systems.
_SWAP = sys.byteorder == "little"

#Structs
_TL = Struct( ">b" + SIGNED_INT_TYPE  )     #Tag list info
_B  = Struct( ">b"                    )     #Signed byte (1 byte)
_S  = Struct( ">h"                    )     #Signed big-endian short (2 bytes)
_US = Struct( ">H"                    )     #Unsigned big-endian short (2 bytes), used for string lengths
_I  = Struct( ">" + SIGNED_INT_TYPE   )     #Signed big-endian int (4 bytes)
_L  = Struct( ">q"                    )     #Signed big-endian long (8 bytes)
_F  = Struct( ">f"                    )     #Big-endian float (4 bytes)
_D  = Struct( ">d"                    )     #Big-endian double (8 bytes)
_UI = Struct( ">" + UNSIGNED_INT_TYPE )     #Unsigned big-endian int (4 bytes)
_CH = Struct( ">" + UNSIGNED_INT_TYPE + "B" ) #Chunk header: length, compression scheme

class LessAnvilError( Exception ):
    """Base class of every error raised by lessanvil."""
    pass

class ChunkError( LessAnvilError ):
    """
    Base class for errors confined to a single chunk.
    A chunk that raises one of these while being examined is kept, and the problem is reported as a warning.
    """
    pass

class MalformedChunk( ChunkError ):
    """
    MalformedChunk( reason )

    This exception is raised when a chunk's framing (length prefix and compression byte) doesn't agree with the sectors it was allocated,
    or when the decompressed data continues past the chunk's root tag.
    """
    def __str__( self ):
        return "Malformed chunk: {}".format( self.args[0] )

class MalformedTag( ChunkError ):
    """
    MalformedTag( offset, byte, reason=None )

    This exception is raised when decoding NBT data fails.
    offset is the position in the decoded data where the problem was found.
    byte is the unexpected byte at that position, or None if the data ended prematurely.
    reason optionally describes the problem in more detail.
    """
    def __init__( self, offset, byte, reason=None ):
        super().__init__( offset, byte, reason )
        self.offset = offset
        self.byte   = byte
        self.reason = reason
    def __str__( self ):
        if self.byte is None:
            s = "Unexpected end of NBT data at offset {:d}".format( self.offset )
        else:
            s = "Unexpected byte 0x{:02x} in NBT data at offset {:d}".format( self.byte, self.offset )
        if self.reason is not None:
            return "{} ({}).".format( s, self.reason )
        return s + "."

class UnsupportedCompression( ChunkError ):
    """
    UnsupportedCompression( scheme )

    This exception is raised for chunks compressed with a scheme lessanvil doesn't handle.
    """
    def __str__( self ):
        return "Unsupported compression scheme: {:d}".format( self.args[0] )

class DecompressionFailed( ChunkError ):
    """
    DecompressionFailed( scheme, reason )

    This exception is raised when a compressed chunk is truncated, corrupt, or followed by trailing data.
    """
    def __str__( self ):
        return "Decompressing scheme {:d} failed: {}".format( *self.args )

class CorruptRegionFile( LessAnvilError ):
    """
    CorruptRegionFile( reason )

    This exception is raised when a region file's header can't be trusted: bad file size, or slots pointing outside of the file or at each other's sectors.
    The whole file is rejected when this happens.
    """
    def __str__( self ):
        return "Corrupt region file: {}".format( self.args[0] )

class IOFailure( LessAnvilError ):
    """
    IOFailure( path, operation )

    This exception is raised when reading or writing a region file fails.
    The underlying OSError is available as __cause__.
    """
    def __str__( self ):
        path, operation = self.args[0], self.args[1]
        cause = self.__cause__
        if cause is None:
            return "Failed to {} \"{}\".".format( operation, path )
        return "Failed to {} \"{}\": {}".format( operation, path, cause )

class NBTFormatError( LessAnvilError ):
    """This exception is raised when building or writing a tag tree that violates the NBT format."""
    pass

class WrongTagError( NBTFormatError ):
    """
    WrongTagError( expected, given )

    This exception is raised when the wrong type of tag is added to a TAG_List.
    According to the NBT format, TAG_Lists are only permitted to contain tags of a single type.
    """
    def __str__( self ):
        return "Expected {}, but received {} instead.".format( describeTag( self.args[0] ), describeTag( self.args[1] ) )

class OutOfBoundsError( NBTFormatError ):
    """
    OutOfBoundsError( value, min, max )

    This exception is raised when writing a value that is outside of the valid range for that type.
    This error can be raised for integral types (byte, short, int, long) if the type cannot represent the value,
    or for tag names and sequence types if the length is too long to be represented.
    """
    def __str__( self ):
        return "Value {:d} is outside of expected range [{:d},{:d}].".format( *self.args )

def describeTag( tagType ):
    """
    Returns a short description of a tag with the given tagType, including the internal name and numeric type (e.g. TAG_Compound (10) ).
    If tagType does not represent a valid tag, returns "Unknown (<tagType>)".
    """
    if tagType < 0 or tagType >= TAG_COUNT:
        return "Unknown ({:d})".format( tagType )
    return "{} ({:d})".format( TAG_NAMES[tagType], tagType )

#_r
def read( i, n ):
    """
    Reads n bytes from i (a readable file-like object over NBT data).
    Raises MalformedTag if the data ends before n bytes can be read.
    """
    b = i.read( n )
    if len( b ) != n:
        raise MalformedTag( i.tell(), None )
    return b

#_rtt
def readTagType( i ):
    """
    Reads the type byte of a named tag header or list header.
    Raises MalformedTag (pointing at the byte) if it isn't a known tag type.
    """
    t = read( i, 1 )[0]
    if t >= TAG_COUNT:
        raise MalformedTag( i.tell() - 1, t )
    return t

#_rn
def readLength( i, s=_I ):
    """
    Reads the length of a TAG_List, TAG_Byte_Array, TAG_Int_Array or TAG_Long_Array.
    Raises MalformedTag if the length is negative.
    """
    b = read( i, s.size )
    l = s.unpack( b )[0]
    if l < 0:
        raise MalformedTag( i.tell() - s.size, b[0] )
    return l

#_rst
def readString( i ):
    """Reads a TAG_String payload (or a tag name)."""
    l = _US.unpack( read( i, 2 ) )[0]
    start = i.tell()
    return decodeString( read( i, l ), start )

#_wst
def writeString( v, o ):
    """Writes a TAG_String payload (or a tag name)."""
    b = encodeString( v )
    length = len( b )
    if length > 65535:
        raise OutOfBoundsError( length, 0, 65535 )
    o.write( _US.pack( length ) )
    o.write( b )

#_wtn
def writeTagName( tagType, name, o ):
    """
    Writes a named tag header.
    tagType is the numerical ID of the tag directly following this header.
    name is the name of the tag.
    """
    o.write( _B.pack( tagType ) )
    writeString( name, o )

def decodeString( b, offset=0 ):
    """
    Decodes the modified UTF-8 used by NBT strings.
    Null characters are stored as the two bytes C0 80, and characters outside of the BMP are stored as a surrogate pair, 3 bytes per surrogate.
    offset is the position of b within the NBT data and is only used for error reporting.
    Raises MalformedTag on bytes that encodeString() would never produce, so decoding followed by encoding always reproduces b.
    """
    if b.isascii() and 0 not in b:
        return b.decode( "ascii" )

    units = []
    n = len( b )
    p = 0
    while p < n:
        c = b[p]
        if c < 0x80:
            if c == 0:
                raise MalformedTag( offset + p, c )
            units.append( c )
            p += 1
            continue

        if c & 0xE0 == 0xC0:
            width = 2
        elif c & 0xF0 == 0xE0:
            width = 3
        else:
            raise MalformedTag( offset + p, c )

        if p + width > n:
            raise MalformedTag( offset + n, None )
        for q in range( p + 1, p + width ):
            if b[q] & 0xC0 != 0x80:
                raise MalformedTag( offset + q, b[q] )

        if width == 2:
            u = ( ( c & 0x1F ) << 6 ) | ( b[p+1] & 0x3F )
            #Overlong forms are rejected, except for C0 80 (null)
            if u != 0 and u < 0x80:
                raise MalformedTag( offset + p, c )
        else:
            u = ( ( c & 0x0F ) << 12 ) | ( ( b[p+1] & 0x3F ) << 6 ) | ( b[p+2] & 0x3F )
            if u < 0x800:
                raise MalformedTag( offset + p, c )
        units.append( u )
        p += width

    #Pair up surrogates. Unpaired surrogates are kept as-is so they survive re-encoding.
    chars = []
    n = len( units )
    p = 0
    while p < n:
        u = units[p]
        if 0xD800 <= u <= 0xDBFF and p + 1 < n and 0xDC00 <= units[p+1] <= 0xDFFF:
            chars.append( chr( 0x10000 + ( ( u - 0xD800 ) << 10 ) + ( units[p+1] - 0xDC00 ) ) )
            p += 2
        else:
            chars.append( chr( u ) )
            p += 1
    return "".join( chars )

def encodeString( s ):
    """Encodes s as modified UTF-8. See help( decodeString )."""
    if s.isascii() and "\0" not in s:
        return s.encode( "ascii" )

    out = bytearray()
    for ch in s:
        cp = ord( ch )
        if cp > 0xFFFF:
            cp -= 0x10000
            units = ( 0xD800 + ( cp >> 10 ), 0xDC00 + ( cp & 0x3FF ) )
        else:
            units = ( cp, )
        for u in units:
            if 0 < u < 0x80:
                out.append( u )
            elif u < 0x800:
                out.append( 0xC0 | ( u >> 6 ) )
                out.append( 0x80 | ( u & 0x3F ) )
            else:
                out.append( 0xE0 | ( u >> 12 ) )
                out.append( 0x80 | ( ( u >> 6 ) & 0x3F ) )
                out.append( 0x80 | ( u & 0x3F ) )
    return bytes( out )

def readArray( i, typecode ):
    """
    Reads a TAG_Int_Array or TAG_Long_Array payload from i into an array of the given typecode.
    Values are converted from big-endian to native-endian.
    """
    l = readLength( i )
    a = array( typecode )
    if l > 0:
        a.frombytes( read( i, l * a.itemsize ) )
        if _SWAP:
            a.byteswap()
    return a

def writeArray( a, o ):
    """
    Writes a TAG_Int_Array or TAG_Long_Array payload.
    a is an array of signed 4-byte or 8-byte integers; it is left unmodified.
    """
    o.write( _I.pack( len( a ) ) )
    if _SWAP:
        a = array( a.typecode, a )
        a.byteswap()
    o.write( a.tobytes() )

def u4array( data ):
    """Converts data (big-endian bytes) to an array.array of unsigned 4-byte integers."""
    a = array( UNSIGNED_INT_TYPE )
    a.frombytes( data )
    if _SWAP:
        a.byteswap()
    return a

def u4bytes( values ):
    """Converts values (an iterable of unsigned 4-byte integers) to big-endian bytes."""
    a = array( UNSIGNED_INT_TYPE, values )
    if _SWAP:
        a.byteswap()
    return a.tobytes()
