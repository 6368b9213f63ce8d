"""
lessanvil's tag module provides a DOM-style interface for decoding and encoding NBT documents.

NBTDocument, the TAG_* classes and the decode() / encode() functions are implemented here.
Decoding and re-encoding an unmodified document reproduces the original bytes exactly.
"""
from collections import OrderedDict
from array import array
from io import BytesIO

from lessanvil.shared import (
    MalformedTag, WrongTagError, OutOfBoundsError,
    TAG_END, TAG_BYTE, TAG_SHORT, TAG_INT, TAG_LONG, TAG_FLOAT, TAG_DOUBLE, TAG_BYTE_ARRAY, TAG_STRING, TAG_LIST, TAG_COMPOUND, TAG_INT_ARRAY, TAG_LONG_ARRAY,
    SIGNED_INT_TYPE, SIGNED_LONG_TYPE,
    _B, _S, _I, _L, _F, _D, _TL,

    read            as _r,   readTagType  as _rtt, readLength   as _rn,
    readString      as _rst, writeString  as _wst, writeTagName as _wtn,
    readArray       as _ra,  writeArray   as _wa,  encodeString as _es
)

_array_new = array.__new__
_array_repr = array.__repr__
_od_setitem = OrderedDict.__setitem__
_list_append = list.append

#Builds one of the four fixed-width integer tag classes. Its range comes from the size of the struct s.
def _makeIntPrimitiveClass( classname, tt, s ):
    vmin = -( 1 << ( 8 * s.size - 1 ) )
    vmax =  ( 1 << ( 8 * s.size - 1 ) ) - 1
    class _IntPrimitiveTag( _BaseIntTag ):
        def __init__( self, value=0 ):
            if self < vmin or self > vmax:
                raise OutOfBoundsError( self, vmin, vmax )
        tagType = tt
        min = vmin
        max = vmax
        def _w( self, o ):
            o.write( s.pack( self ) )
    def _read( i ):
        return _IntPrimitiveTag( s.unpack( _r( i, s.size ) )[0] )
    _IntPrimitiveTag._r = _read

    _IntPrimitiveTag.__name__ = classname
    _IntPrimitiveTag.__qualname__ = classname
    _IntPrimitiveTag.__doc__ = \
        "{0:}: an int subclass holding values in [{1:d}, {2:d}].".format( classname, vmin, vmax )
    return _IntPrimitiveTag

class _BaseTag:
    """Base class for all lessanvil tag classes."""
    tagType    = -1

    isIntegral = False #True for TAG_Byte, TAG_Short, TAG_Int, TAG_Long

    __slots__ = ()

    def rget( self, *args, default=None ):
        """
        Looks up a nested tag by a path of compound keys and list indices.
        Returns default as soon as a step of the path doesn't exist, instead of raising.

            chunk.rget( "Level", "InhabitedTime" )  #None for chunks without a Level compound
        """
        if len( args ) == 0:
            raise TypeError( "rget() takes at least 1 argument but 0 were given." )
        tag = self
        for key in args:
            tag = tag._child( key )
            if tag is None:
                return default
        return tag

    def _child( self, key ):
        """Returns the tag directly inside this one at key, or None. Only containers have children."""
        return None

    def _w( self, o ):
        """Write this tag's payload to the given writable file-like object, o."""
        raise NotImplementedError()
    def _r( i ):
        """Read this tag's payload from the given readable file-like object, i."""
        raise NotImplementedError()

class _BaseIntTag( int, _BaseTag ):
    """
    Common base of TAG_Byte, TAG_Short, TAG_Int and TAG_Long.
    Each subclass sets min and max, the inclusive range checked on construction.
    """
    isIntegral = True

    __slots__ = ()

    min =  1
    max = -1

    def __repr__( self ):
        return "{}({})".format( self.__class__.__name__, int.__repr__( self ) )

TAG_Byte  = _makeIntPrimitiveClass( "TAG_Byte",  TAG_BYTE,  _B )
TAG_Short = _makeIntPrimitiveClass( "TAG_Short", TAG_SHORT, _S )
TAG_Int   = _makeIntPrimitiveClass( "TAG_Int",   TAG_INT,   _I )
TAG_Long  = _makeIntPrimitiveClass( "TAG_Long",  TAG_LONG,  _L )

class TAG_Float( float, _BaseTag ):
    """
    Represents a TAG_Float.
    TAG_Float is a float subclass; its value is stored as a binary32 when written.
    """
    tagType = TAG_FLOAT

    __slots__ = ()

    def __repr__( self ):
        return "TAG_Float({})".format( float.__repr__( self ) )
    def _r( i ):
        return TAG_Float( _F.unpack( _r( i, 4 ) )[0] )
    def _w( self, o ):
        o.write( _F.pack( self ) )

class TAG_Double( float, _BaseTag ):
    """Represents a TAG_Double."""
    tagType = TAG_DOUBLE

    __slots__ = ()

    def __repr__( self ):
        return "TAG_Double({})".format( float.__repr__( self ) )
    def _r( i ):
        return TAG_Double( _D.unpack( _r( i, 8 ) )[0] )
    def _w( self, o ):
        o.write( _D.pack( self ) )

class TAG_Byte_Array( bytearray, _BaseTag ):
    """
    Represents a TAG_Byte_Array.
    TAG_Byte_Array is a bytearray subclass. Values are in the range [0,255];
    the NBT format doesn't define the meaning of bytes within a TAG_Byte_Array.
    """
    tagType = TAG_BYTE_ARRAY

    __slots__ = ()

    def __repr__( self ):
        return "TAG_Byte_Array" + bytearray.__repr__( self )[9:]
    def _r( i ):
        return TAG_Byte_Array( _r( i, _rn( i ) ) )
    def _w( self, o ):
        o.write( _I.pack( len( self ) ) )
        o.write( self )

class TAG_String( str, _BaseTag ):
    """
    Represents a TAG_String.
    TAG_String is a str subclass. It can be no longer than 65535 bytes when encoded as modified UTF-8.
    """
    tagType = TAG_STRING

    __slots__ = ()

    def __init__( self, *args, **kwargs ):
        l = len( _es( self ) )
        if l > 65535:
            raise OutOfBoundsError( l, 0, 65535 )

    def __repr__( self ):
        return "TAG_String({})".format( str.__repr__( self ) )
    def _r( i ):
        return TAG_String( _rst( i ) )
    def _w( self, o ):
        _wst( self, o )

class _BaseArrayTag( array, _BaseTag ):
    """Base class for TAG_Int_Array and TAG_Long_Array."""
    typecode_ = None

    __slots__ = ()

    #array implements __new__ rather than __init__
    def __new__( cls, *args, **kwargs ):
        return _array_new( cls, cls.typecode_, *args, **kwargs )

    def __repr__( self ):
        if len( self ) > 0:
            return "{}({})".format( self.__class__.__name__, _array_repr( self )[11:-1] )
        return "{}()".format( self.__class__.__name__ )

    def _w( self, o ):
        _wa( self, o )

class TAG_Int_Array( _BaseArrayTag ):
    """
    Represents a TAG_Int_Array.
    TAG_Int_Array is an array of signed 4-byte integers.
    """
    tagType   = TAG_INT_ARRAY
    typecode_ = SIGNED_INT_TYPE

    __slots__ = ()

    def _r( i ):
        return TAG_Int_Array( _ra( i, SIGNED_INT_TYPE ) )

class TAG_Long_Array( _BaseArrayTag ):
    """
    Represents a TAG_Long_Array.
    TAG_Long_Array is an array of signed 8-byte integers. Modern chunks store heightmaps and block states this way.
    """
    tagType   = TAG_LONG_ARRAY
    typecode_ = SIGNED_LONG_TYPE

    __slots__ = ()

    def _r( i ):
        return TAG_Long_Array( _ra( i, SIGNED_LONG_TYPE ) )

class TAG_List( list, _BaseTag ):
    """
    Represents a TAG_List.
    TAG_List is a list subclass that only holds tags of a single type, listTagType.
    An empty list keeps whatever listTagType it was read or created with, so it is written back the same way.
    """
    tagType = TAG_LIST

    __slots__ = "listTagType"

    def __init__( self, iterable=(), listTagType=TAG_END ):
        """
        TAG_List constructor.

        iterable is an optional iterable of tags. Every tag must be of the same type.
        listTagType is the numerical tag type of the list's entries.
            If it is TAG_END (the default) and iterable is non-empty, it is deduced from the first tag.
        """
        super().__init__()
        self.listTagType = listTagType
        for t in iterable:
            self.append( t )

    def append( self, value ):
        tt = getattr( value, "tagType", None )
        if tt is None:
            raise TypeError( "TAG_List entries must be tags." )
        if len( self ) == 0 and self.listTagType == TAG_END:
            self.listTagType = tt
        elif tt != self.listTagType:
            raise WrongTagError( self.listTagType, tt )
        _list_append( self, value )

    def _child( self, key ):
        if isinstance( key, int ) and 0 <= key < len( self ):
            return self[key]
        return None

    def __repr__( self ):
        return "TAG_List({}, listTagType={:d})".format( list.__repr__( self ), self.listTagType )

    def _r( i ):
        start = i.tell()
        t = _rtt( i )
        l = _rn( i )
        if t == TAG_END and l > 0:
            raise MalformedTag( start, t, "non-empty list of TAG_End" )

        tag = TAG_List( listTagType=t )
        if l > 0:
            r = _TAGCLASS[t]._r
            for _ in range( l ):
                _list_append( tag, r( i ) )
        return tag

    def _w( self, o ):
        lt = self.listTagType
        o.write( _TL.pack( lt, len( self ) ) )
        for t in self:
            if t.tagType != lt:
                raise WrongTagError( lt, t.tagType )
            t._w( o )

class TAG_Compound( OrderedDict, _BaseTag ):
    """
    Represents a TAG_Compound.
    TAG_Compound is an OrderedDict subclass whose keys are str and whose values are tags.
    Entries keep the order they were read in, which is the order they are written back in.
    """
    tagType = TAG_COMPOUND

    __slots__ = ()

    def __setitem__( self, key, value ):
        if not isinstance( key, str ):
            raise TypeError( "Attempted to set a non-str key on TAG_Compound." )
        if not hasattr( value, "tagType" ):
            raise TypeError( "TAG_Compound values must be tags." )
        _od_setitem( self, key, value )

    def _child( self, key ):
        return self.get( key )

    def _r( i ):
        return _readCompound( TAG_Compound(), i )

    def _w( self, o ):
        for n,t in self.items():
            _wtn( t.tagType, n, o )
            t._w( o )
        o.write( b"\0" )

def _readCompound( tag, i ):
    """Reads the entries of a TAG_Compound payload from i into tag, up to and including the terminating TAG_End."""
    si = _od_setitem

    start = i.tell()
    tt = _rtt( i )
    while tt != TAG_END:
        #Now that we know the tag isn't TAG_END, read the name and check that there isn't already a tag with that name
        name = _rst( i )
        if name in tag:
            raise MalformedTag( start, tt, "duplicate name \"{}\"".format( name ) )

        si( tag, name, _TAGCLASS[tt]._r( i ) )
        start = i.tell()
        tt = _rtt( i )

    return tag

class NBTDocument( TAG_Compound ):
    """
    Represents an NBT document.

    An NBTDocument is a named TAG_Compound that serves as the root tag of the NBT tree.
    For chunks the name is almost always the empty string, "".
    """
    __slots__ = ()

    def __init__( self, name="", *args, **kwargs ):
        super().__init__( *args, **kwargs )
        self.name = name

    def __repr__( self ):
        return "NBTDocument({!r}, {})".format( self.name, dict.__repr__( self ) )

    def _r( i ):
        start = i.tell()
        tt = _r( i, 1 )[0]
        if tt != TAG_COMPOUND:
            raise MalformedTag( start, tt, "root tag must be a TAG_Compound" )
        return _readCompound( NBTDocument( _rst( i ) ), i )

    def _w( self, o ):
        _wtn( TAG_COMPOUND, self.name, o )
        super()._w( o )

#Tag classes by tag type
_TAGCLASS = (
    None,           #TAG_END
    TAG_Byte,       #TAG_BYTE
    TAG_Short,      #TAG_SHORT
    TAG_Int,        #TAG_INT
    TAG_Long,       #TAG_LONG
    TAG_Float,      #TAG_FLOAT
    TAG_Double,     #TAG_DOUBLE
    TAG_Byte_Array, #TAG_BYTE_ARRAY
    TAG_String,     #TAG_STRING
    TAG_List,       #TAG_LIST
    TAG_Compound,   #TAG_COMPOUND
    TAG_Int_Array,  #TAG_INT_ARRAY
    TAG_Long_Array  #TAG_LONG_ARRAY
)

def decodePrefix( data ):
    """
    Decodes the NBTDocument at the start of data (a bytes-like object).
    Returns a tuple, ( doc, end ), where end is the offset just past the root tag; anything from end on is left unread.
    Raises MalformedTag, naming the offset and the unexpected byte, if data doesn't start with a well-formed named TAG_Compound.
    """
    i = BytesIO( data )
    try:
        doc = NBTDocument._r( i )
    except RecursionError:
        raise MalformedTag( i.tell(), None, "tags nested too deeply" ) from None
    return doc, i.tell()

def decode( data ):
    """
    Decodes uncompressed NBT data (a bytes-like object) and returns an NBTDocument.
    The data must hold exactly one named TAG_Compound; see help( decodePrefix ) for errors.
    Data after the root tag raises MalformedTag at the first extra byte.
    """
    data = bytes( data )
    doc, end = decodePrefix( data )
    if end != len( data ):
        raise MalformedTag( end, data[end], "trailing data after root tag" )
    return doc

def encode( doc ):
    """
    Encodes an NBTDocument and returns the uncompressed NBT data as bytes.
    For a document returned by decode(), this reproduces the decoded bytes exactly.
    """
    with BytesIO() as o:
        doc._w( o )
        return o.getvalue()
