import unittest
from array import array

import lessanvil
from lessanvil.shared import encodeString, decodeString

def exampleDocument():
    doc = lessanvil.NBTDocument( "Example!" )
    doc["byte"]   = lessanvil.TAG_Byte( -3 )
    doc["short"]  = lessanvil.TAG_Short( -500 )
    doc["int"]    = lessanvil.TAG_Int( -1234567 )
    doc["long"]   = lessanvil.TAG_Long( -12345678910111213 )
    doc["float"]  = lessanvil.TAG_Float( 52.5 )
    doc["double"] = lessanvil.TAG_Double( 123.456789101112 )
    doc["string"] = lessanvil.TAG_String( "This is a string!" )

    compound = lessanvil.TAG_Compound()
    compound["name"] = lessanvil.TAG_String( "Jeff" )
    compound["id"]   = lessanvil.TAG_Int( 5 )
    doc["compound"] = compound

    doc["list"]  = lessanvil.TAG_List( lessanvil.TAG_String( s ) for s in ( "Hey!", "Check", "out", "these", "strings!" ) )
    doc["list2"] = lessanvil.TAG_List( lessanvil.TAG_Float( f ) for f in ( 10.25, 15.5, 17.0, -1.125 ) )
    doc["nested"] = lessanvil.TAG_List( [ lessanvil.TAG_List( [ lessanvil.TAG_Byte( 1 ) ] ), lessanvil.TAG_List() ] )
    doc["empty"] = lessanvil.TAG_List( listTagType=lessanvil.TAG_COMPOUND )
    doc["bytearray"] = lessanvil.TAG_Byte_Array( b"\x00\x01\x02\x03" )
    doc["intarray"]  = lessanvil.TAG_Int_Array( array( "i", ( 5, 6, -7, 8 ) ) )
    doc["longarray"] = lessanvil.TAG_Long_Array( array( "q", ( 9, -10, 1 << 40 ) ) )
    doc["unicode"]   = lessanvil.TAG_String( "null\0 emoji\U0001F600 lone\ud800 é" )
    return doc

class TestTagCodec( unittest.TestCase ):
    def test_roundtrip( self ):
        data = lessanvil.encode( exampleDocument() )
        doc = lessanvil.decode( data )
        self.assertEqual( lessanvil.encode( doc ), data )

        self.assertEqual( doc.name, "Example!" )
        self.assertEqual( list( doc.keys() ), list( exampleDocument().keys() ) )
        self.assertEqual( doc["long"], -12345678910111213 )
        self.assertEqual( doc["list2"].listTagType, lessanvil.TAG_FLOAT )
        self.assertEqual( doc["empty"].listTagType, lessanvil.TAG_COMPOUND )
        self.assertEqual( doc["nested"][1].listTagType, lessanvil.TAG_END )
        self.assertEqual( list( doc["longarray"] ), [ 9, -10, 1 << 40 ] )
        self.assertEqual( doc["unicode"], "null\0 emoji\U0001F600 lone\ud800 é" )
        self.assertEqual( doc.rget( "compound", "name" ), "Jeff" )
        self.assertIsNone( doc.rget( "compound", "missing", "deeper" ) )

    def test_exactBytes( self ):
        doc = lessanvil.NBTDocument( "hi" )
        doc["a"] = lessanvil.TAG_Short( 1 )
        self.assertEqual( lessanvil.encode( doc ), b"\x0a\x00\x02hi\x02\x00\x01a\x00\x01\x00" )

    def test_modifiedUTF8( self ):
        self.assertEqual( encodeString( "a\0b" ), b"a\xc0\x80b" )
        self.assertEqual( encodeString( "\U0001F600" ), b"\xed\xa0\xbd\xed\xb8\x80" )
        self.assertEqual( decodeString( b"\xc0\x80" ), "\0" )
        self.assertEqual( decodeString( b"\xed\xa0\xbd\xed\xb8\x80" ), "\U0001F600" )
        self.assertEqual( decodeString( encodeString( "\udc00x" ) ), "\udc00x" )

        for bad in ( b"\xc1\x81", b"\xe0\x81\x81", b"\x00", b"\xff", b"\xc3" ):
            with self.assertRaises( lessanvil.MalformedTag ):
                decodeString( bad )

    def test_malformed( self ):
        cases = (
            #Root isn't a TAG_Compound
            ( b"\x01\x00\x00\x05", 0, 0x01 ),
            #Unknown tag type
            ( b"\x0a\x00\x00\x0d\x00\x01a\x00", 3, 0x0d ),
            #Trailing data
            ( b"\x0a\x00\x00\x00\xff", 4, 0xff ),
            #Duplicate name
            ( b"\x0a\x00\x00\x01\x00\x01a\x05\x01\x00\x01a\x06\x00", 8, 0x01 ),
            #Non-empty list of TAG_End
            ( b"\x0a\x00\x00\x09\x00\x01l\x00\x00\x00\x00\x01\x00", 7, 0x00 ),
            #Negative length
            ( b"\x0a\x00\x00\x07\x00\x01b\xff\xff\xff\xff\x00", 7, 0xff ),
        )
        for data, offset, byte in cases:
            with self.assertRaises( lessanvil.MalformedTag ) as cm:
                lessanvil.decode( data )
            self.assertEqual( cm.exception.offset, offset, data )
            self.assertEqual( cm.exception.byte, byte, data )

    def test_truncated( self ):
        data = lessanvil.encode( exampleDocument() )
        for n in ( 0, 1, 5, len( data ) // 2, len( data ) - 1 ):
            with self.assertRaises( lessanvil.MalformedTag ) as cm:
                lessanvil.decode( data[:n] )
            self.assertIsNone( cm.exception.byte )

    def test_decodePrefix( self ):
        data = lessanvil.encode( exampleDocument() )
        doc, end = lessanvil.tag.decodePrefix( data + b"extra" )
        self.assertEqual( end, len( data ) )
        self.assertEqual( lessanvil.encode( doc ), data )

    def test_malformedIsChunkError( self ):
        with self.assertRaises( lessanvil.ChunkError ):
            lessanvil.decode( b"" )

    def test_values( self ):
        with self.assertRaises( lessanvil.OutOfBoundsError ):
            lessanvil.TAG_Byte( 128 )
        with self.assertRaises( lessanvil.OutOfBoundsError ):
            lessanvil.TAG_Int( -( 1 << 31 ) - 1 )
        self.assertEqual( lessanvil.TAG_Long( ( 1 << 63 ) - 1 ), ( 1 << 63 ) - 1 )

        l = lessanvil.TAG_List( [ lessanvil.TAG_Byte( 1 ) ] )
        with self.assertRaises( lessanvil.WrongTagError ):
            l.append( lessanvil.TAG_Int( 1 ) )

        c = lessanvil.TAG_Compound()
        with self.assertRaises( TypeError ):
            c["x"] = 5
        with self.assertRaises( TypeError ):
            c[1] = lessanvil.TAG_Int( 5 )

class RecordingHandler( lessanvil.NBTHandler ):
    def __init__( self, stopAt=None ):
        self.events = []
        self.stopAt = stopAt
    def _record( self, *args ):
        self.events.append( args )
        if args == self.stopAt:
            self.stop()
    def name( self, tagType, name ):
        self._record( "name", tagType, name )
    def start( self ):
        self._record( "start" )
    def end( self ):
        self._record( "end" )
    def byte( self, value ):
        self._record( "byte", value )
    def long( self, value ):
        self._record( "long", value )
    def string( self, value ):
        self._record( "string", value )
    def startList( self, tagType, length ):
        self._record( "startList", tagType, length )
    def endList( self ):
        self._record( "endList" )
    def startCompound( self ):
        self._record( "startCompound" )
    def endCompound( self ):
        self._record( "endCompound" )
    def longs( self, values ):
        self._record( "longs", list( values ) )

class TestParse( unittest.TestCase ):
    def setUp( self ):
        doc = lessanvil.NBTDocument( "root" )
        doc["b"] = lessanvil.TAG_Byte( 7 )
        doc["l"] = lessanvil.TAG_List( [ lessanvil.TAG_String( "x" ), lessanvil.TAG_String( "y" ) ] )
        inner = lessanvil.TAG_Compound()
        inner["t"] = lessanvil.TAG_Long( 42 )
        inner["h"] = lessanvil.TAG_Long_Array( array( "q", ( 1, 2 ) ) )
        doc["c"] = inner
        self.data = lessanvil.encode( doc )

    def test_events( self ):
        h = RecordingHandler()
        self.assertTrue( lessanvil.parse( self.data, h ) )
        self.assertEqual( h.events, [
            ( "name", lessanvil.TAG_COMPOUND, "root" ),
            ( "start", ),
            ( "startCompound", ),
            ( "name", lessanvil.TAG_BYTE, "b" ),
            ( "byte", 7 ),
            ( "name", lessanvil.TAG_LIST, "l" ),
            ( "startList", lessanvil.TAG_STRING, 2 ),
            ( "string", "x" ),
            ( "string", "y" ),
            ( "endList", ),
            ( "name", lessanvil.TAG_COMPOUND, "c" ),
            ( "startCompound", ),
            ( "name", lessanvil.TAG_LONG, "t" ),
            ( "long", 42 ),
            ( "name", lessanvil.TAG_LONG_ARRAY, "h" ),
            ( "longs", [ 1, 2 ] ),
            ( "endCompound", ),
            ( "endCompound", ),
            ( "end", )
        ] )

    def test_stop( self ):
        h = RecordingHandler( stopAt=( "long", 42 ) )
        self.assertFalse( lessanvil.parse( self.data, h ) )
        self.assertEqual( h.events[-1], ( "long", 42 ) )

    def test_malformed( self ):
        with self.assertRaises( lessanvil.MalformedTag ):
            lessanvil.parse( b"\x0a\x00\x00\x0d\x00\x01a\x00", lessanvil.NBTHandler() )
        with self.assertRaises( lessanvil.MalformedTag ):
            lessanvil.parse( self.data[:-3], lessanvil.NBTHandler() )

if __name__ == "__main__":
    unittest.main()
