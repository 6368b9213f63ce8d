import gzip
import unittest
import zlib

import lessanvil
from lessanvil import compression

DATA = b"\x0a\x00\x00" + b"\x01\x00\x01a\x05" * 200 + b"\x00"

class TestCompression( unittest.TestCase ):
    def test_schemes( self ):
        for scheme in ( compression.COMPRESSION_GZIP, compression.COMPRESSION_ZLIB, compression.COMPRESSION_NONE ):
            encoded = compression.encode( scheme, DATA )
            self.assertEqual( compression.decode( scheme, encoded ), DATA, scheme )

        #Streams written by other encoders decode too
        self.assertEqual( compression.decode( compression.COMPRESSION_GZIP, gzip.compress( DATA ) ), DATA )
        self.assertEqual( compression.decode( compression.COMPRESSION_ZLIB, zlib.compress( DATA, 9 ) ), DATA )
        self.assertEqual( compression.encode( compression.COMPRESSION_NONE, DATA ), DATA )

    def test_gzipDeterministic( self ):
        self.assertEqual( compression.encode( compression.COMPRESSION_GZIP, DATA ), compression.encode( compression.COMPRESSION_GZIP, DATA ) )

    def test_unsupported( self ):
        for scheme in ( 0, 4, 127, compression.COMPRESSION_EXTERNAL, compression.COMPRESSION_EXTERNAL | compression.COMPRESSION_ZLIB ):
            with self.assertRaises( lessanvil.UnsupportedCompression ) as cm:
                compression.decode( scheme, zlib.compress( DATA ) )
            self.assertEqual( cm.exception.args[0], scheme )
        with self.assertRaises( lessanvil.UnsupportedCompression ):
            compression.encode( 99, DATA )

    def test_truncated( self ):
        for scheme in ( compression.COMPRESSION_GZIP, compression.COMPRESSION_ZLIB ):
            encoded = compression.encode( scheme, DATA )
            with self.assertRaises( lessanvil.DecompressionFailed ):
                compression.decode( scheme, encoded[:-6] )
            with self.assertRaises( lessanvil.DecompressionFailed ):
                compression.decode( scheme, b"" )

    def test_trailing( self ):
        for scheme in ( compression.COMPRESSION_GZIP, compression.COMPRESSION_ZLIB ):
            with self.assertRaises( lessanvil.DecompressionFailed ):
                compression.decode( scheme, compression.encode( scheme, DATA ) + b"\x00\x01" )

    def test_corrupt( self ):
        with self.assertRaises( lessanvil.DecompressionFailed ):
            compression.decode( compression.COMPRESSION_ZLIB, b"this is not zlib data" )
        with self.assertRaises( lessanvil.DecompressionFailed ):
            compression.decode( compression.COMPRESSION_GZIP, compression.encode( compression.COMPRESSION_ZLIB, DATA ) )

    def test_reencodeScheme( self ):
        self.assertEqual( compression.reencodeScheme( compression.COMPRESSION_GZIP ), compression.COMPRESSION_ZLIB )
        self.assertEqual( compression.reencodeScheme( compression.COMPRESSION_ZLIB ), compression.COMPRESSION_ZLIB )
        self.assertEqual( compression.reencodeScheme( compression.COMPRESSION_NONE ), compression.COMPRESSION_NONE )

if __name__ == "__main__":
    unittest.main()
