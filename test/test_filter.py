import unittest

import lessanvil
from lessanvil import filter
from lessanvil.filter import KEEP, REMOVE, MISSING_KEEP, MISSING_REMOVE

from helpers import makeChunk

class TestFilter( unittest.TestCase ):
    def test_getActivity( self ):
        self.assertEqual( filter.getActivity( makeChunk( 1234 ) ), 1234 )
        self.assertEqual( filter.getActivity( makeChunk( 1234, legacy=True ) ), 1234 )
        self.assertIsNone( filter.getActivity( makeChunk() ) )
        self.assertIsNone( filter.getActivity( makeChunk( legacy=True ) ) )

        #Non-integral values don't count
        doc = makeChunk()
        doc["InhabitedTime"] = lessanvil.TAG_String( "1234" )
        self.assertIsNone( filter.getActivity( doc ) )

        #Other integer widths do
        doc = makeChunk()
        doc["InhabitedTime"] = lessanvil.TAG_Int( 77 )
        self.assertEqual( filter.getActivity( doc ), 77 )

    def test_rootWinsOverLegacy( self ):
        doc = makeChunk( 5, legacy=True )
        doc["InhabitedTime"] = lessanvil.TAG_Long( 9000 )
        self.assertEqual( filter.getActivity( doc ), 9000 )
        self.assertEqual( filter.scanActivity( lessanvil.encode( doc ) ), 9000 )

    def test_scanMatchesGetActivity( self ):
        docs = [ makeChunk( 0 ), makeChunk( 99 ), makeChunk( 1 << 40, legacy=True ), makeChunk(), makeChunk( legacy=True ) ]

        #A nested InhabitedTime elsewhere is ignored
        doc = makeChunk()
        inner = lessanvil.TAG_Compound()
        inner["InhabitedTime"] = lessanvil.TAG_Long( 3 )
        doc["Other"] = inner
        docs.append( doc )

        #So is one inside a list named Level
        doc = makeChunk()
        doc["Level"] = lessanvil.TAG_List( [ inner ] )
        docs.append( doc )

        for doc in docs:
            self.assertEqual( filter.scanActivity( lessanvil.encode( doc ) ), filter.getActivity( doc ) )

    def test_decide( self ):
        self.assertEqual( filter.decideActivity( 50, 100 ), REMOVE )
        self.assertEqual( filter.decideActivity( 100, 100 ), KEEP )
        self.assertEqual( filter.decideActivity( 5000, 100 ), KEEP )
        self.assertEqual( filter.decideActivity( 0, 0 ), KEEP )
        self.assertEqual( filter.decideActivity( None, 100 ), KEEP )
        self.assertEqual( filter.decideActivity( None, 100, MISSING_REMOVE ), REMOVE )
        self.assertEqual( filter.decide( makeChunk( 50 ), 100 ), REMOVE )
        self.assertEqual( filter.decide( makeChunk(), 100, MISSING_KEEP ), KEEP )
        with self.assertRaises( ValueError ):
            filter.decide( makeChunk( 50 ), -1 )

    def test_monotonic( self ):
        #Raising the threshold never turns a REMOVE into a KEEP
        values = ( 0, 1, 19, 20, 21, 1200, 72000, 1 << 40 )
        thresholds = ( 0, 1, 20, 21, 1201, 72001, 1 << 41 )
        for v in values:
            previous = KEEP
            for t in thresholds:
                d = filter.decideActivity( v, t )
                if previous == REMOVE:
                    self.assertEqual( d, REMOVE, ( v, t ) )
                previous = d

if __name__ == "__main__":
    unittest.main()
