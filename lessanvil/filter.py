"""
Decides whether a chunk is kept or removed.

A chunk is removed when players have spent less time in it than a threshold.
That time is the chunk's InhabitedTime, counted in game ticks (20 per second).
Chunk format 1.18+ stores InhabitedTime in the root compound; older chunks store it in the "Level" compound.
"""
from lessanvil.handler import NBTHandler
from lessanvil.parse   import parse
from lessanvil.shared  import TAG_COMPOUND

#Decisions
KEEP   = 0
REMOVE = 1

DECISION_NAMES = (
    "keep",
    "remove"
)

#What to do with chunks that have no InhabitedTime
MISSING_KEEP   = KEEP
MISSING_REMOVE = REMOVE

ACTIVITY_FIELD = "InhabitedTime"
LEGACY_PARENT  = "Level"

def getActivity( tree ):
    """
    Returns the InhabitedTime of a decoded chunk (an NBTDocument or TAG_Compound) as an int,
    or None if the chunk doesn't have an integral InhabitedTime.
    """
    v = tree.get( ACTIVITY_FIELD )
    if v is not None and v.isIntegral:
        return int( v )
    level = tree.get( LEGACY_PARENT )
    if level is not None and level.tagType == TAG_COMPOUND:
        v = level.get( ACTIVITY_FIELD )
        if v is not None and v.isIntegral:
            return int( v )
    return None

class _ActivityHandler( NBTHandler ):
    """
    Looks for InhabitedTime while a chunk is parsed.
    Parsing stops as soon as it is found in the root compound.
    A value found under "Level" is remembered, but parsing continues in case the root compound has one too.
    """
    def __init__( self ):
        self.value  = None
        self.legacy = None
        self._n = None  #Name of the tag being parsed (None for list entries)
        self._s = []    #Names of the enclosing compounds and lists
    def name( self, tagType, name ):
        self._n = name
    def _push( self ):
        self._s.append( self._n )
        self._n = None
    def _pop( self ):
        self._s.pop()
        self._n = None
    def startList( self, tagType, length ):
        self._push()
    startCompound = _push
    endCompound   = _pop
    endList       = _pop

    def _integer( self, value ):
        if self._n != ACTIVITY_FIELD:
            return
        s = self._s
        if len( s ) == 1:
            self.value = value
            self.stop()
        elif len( s ) == 2 and s[1] == LEGACY_PARENT and self.legacy is None:
            self.legacy = value
    byte  = _integer
    short = _integer
    int   = _integer
    long  = _integer

def scanActivity( data ):
    """
    Returns the InhabitedTime of a chunk's uncompressed NBT data, or None if it doesn't have one.
    Gives the same answer as getActivity( tag.decode( data ) ), but only parses as much of data as it needs to.
    """
    h = _ActivityHandler()
    parse( data, h )
    return h.value if h.value is not None else h.legacy

def decideActivity( value, threshold, missing=MISSING_KEEP ):
    """
    Returns REMOVE if value (an InhabitedTime, in ticks) is less than threshold, KEEP otherwise.
    If value is None, returns missing.
    threshold must be a non-negative int.
    """
    if threshold < 0:
        raise ValueError( "threshold must not be negative, got {:d}".format( threshold ) )
    if value is None:
        return missing
    return REMOVE if value < threshold else KEEP

def decide( tree, threshold, missing=MISSING_KEEP ):
    """
    Returns KEEP or REMOVE for a decoded chunk.
    See help( decideActivity ) for the meaning of threshold and missing.
    """
    return decideActivity( getActivity( tree ), threshold, missing )
