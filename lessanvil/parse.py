"""
Event-driven NBT parsing.

parse() walks uncompressed NBT data and reports each tag to an NBTHandler as it goes, without building a tree.
This is how lessanvil looks up a chunk's InhabitedTime without decoding the block data around it.
"""
from io import BytesIO

from lessanvil.shared import (
    MalformedTag,
    read as _r, readTagType as _rtt, readLength as _rn, readString as _rst, readArray as _ra,
    _B, _S, _I, _L, _F, _D,
    TAG_END, TAG_COMPOUND,
    SIGNED_INT_TYPE, SIGNED_LONG_TYPE
)

#Largest piece of a TAG_Byte_Array passed to handler.bytes() at once
BYTES_CHUNK = 4096

class _StopParsingNBT( Exception ):
    """Raised by NBTHandler.stop() to unwind out of parse()."""
    pass

def parse( source, handler ):
    """
    Parses uncompressed NBT data, calling handler's methods (see NBTHandler) for every tag in document order.

    source is a bytes-like object or a readable, seekable file-like object.
    The handler may call its stop() method from any callback to end parsing early.
    Exceptions raised by the handler propagate out of parse().

    Raises MalformedTag for the same problems tag.decode() reports, but only in the part of the data read before stopping.
    Trailing data after the root tag isn't read, and so isn't reported.

    Returns True if the whole document was read, or False if the handler stopped early.
    """
    if isinstance( source, ( bytes, bytearray, memoryview ) ):
        with BytesIO( source ) as file:
            return _parseImpl( file, handler )
    return _parseImpl( source, handler )

def _parseImpl( input, handler ):
    start = input.tell()
    tagType = _r( input, 1 )[0]
    if tagType != TAG_COMPOUND:
        raise MalformedTag( start, tagType, "root tag must be a TAG_Compound" )

    try:
        handler.name( tagType, _rst( input ) )
        handler.start()
        parseTagCompound( input, handler )
        handler.end()
    except _StopParsingNBT:
        return False
    except RecursionError:
        raise MalformedTag( input.tell(), None, "tags nested too deeply" ) from None
    return True

#Returns a function that reads a fixed-size primitive with the struct s and passes it to the handler method called callback.
def _makePrimitiveParser( funcname, s, callback ):
    def _parsePrimitive( input, handler ):
        getattr( handler, callback )( s.unpack( _r( input, s.size ) )[0] )
    _parsePrimitive.__name__ = funcname
    _parsePrimitive.__qualname__ = funcname
    _parsePrimitive.__doc__ = "Reads a TAG_{} payload from input and calls handler.{}() with its value.".format( funcname[8:], callback )
    return _parsePrimitive

parseTagByte   = _makePrimitiveParser( "parseTagByte",   _B, "byte"   )
parseTagShort  = _makePrimitiveParser( "parseTagShort",  _S, "short"  )
parseTagInt    = _makePrimitiveParser( "parseTagInt",    _I, "int"    )
parseTagLong   = _makePrimitiveParser( "parseTagLong",   _L, "long"   )
parseTagFloat  = _makePrimitiveParser( "parseTagFloat",  _F, "float"  )
parseTagDouble = _makePrimitiveParser( "parseTagDouble", _D, "double" )

def parseTagByteArray( input, handler ):
    """
    Reads a TAG_Byte_Array payload.
    The handler sees startByteArray( length ), then the contents in pieces of at most BYTES_CHUNK bytes, then endByteArray().
    """
    remaining = _rn( input )
    handler.startByteArray( remaining )
    while remaining > 0:
        n = min( remaining, BYTES_CHUNK )
        handler.bytes( _r( input, n ) )
        remaining -= n
    handler.endByteArray()

def parseTagString( input, handler ):
    handler.string( _rst( input ) )

def parseTagList( input, handler ):
    """
    Reads a TAG_List payload.
    Entries are reported without name() events, between startList( tagType, length ) and endList().
    """
    start = input.tell()
    tagType = _rtt( input )
    length = _rn( input )
    if tagType == TAG_END and length > 0:
        raise MalformedTag( start, tagType, "non-empty list of TAG_End" )

    handler.startList( tagType, length )
    if length > 0:
        entry = TAG_PARSERS[ tagType ]
        for _ in range( length ):
            entry( input, handler )
    handler.endList()

def parseTagCompound( input, handler ):
    """
    Reads a TAG_Compound payload up to and including its terminating TAG_End.
    Each entry is reported as name( tagType, name ) followed by the entry's own events, all between startCompound() and endCompound().
    """
    handler.startCompound()
    tagType = _rtt( input )
    while tagType != TAG_END:
        handler.name( tagType, _rst( input ) )
        TAG_PARSERS[ tagType ]( input, handler )
        tagType = _rtt( input )
    handler.endCompound()

def parseTagIntArray( input, handler ):
    handler.ints( _ra( input, SIGNED_INT_TYPE ) )

def parseTagLongArray( input, handler ):
    handler.longs( _ra( input, SIGNED_LONG_TYPE ) )

#Payload parsers, indexed by tag type
TAG_PARSERS = (
    None,
    parseTagByte,
    parseTagShort,
    parseTagInt,
    parseTagLong,
    parseTagFloat,
    parseTagDouble,
    parseTagByteArray,
    parseTagString,
    parseTagList,
    parseTagCompound,
    parseTagIntArray,
    parseTagLongArray
)
