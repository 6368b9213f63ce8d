#This module reads and rewrites Anvil region files.
#
#Region files are divided into 4KiB blocks called sectors.
#Region files start with an 8 KiB large header.
#The first 4 KiB consists of 1024 locations.
#Each location describes where within the region file a particular chunk can be found. Each location is 4 bytes long, and consists of two parts:
#    * Offset:
#      3-byte, big-endian unsigned integer
#      The offset of the chunk within the file, in sectors.
#    * Size:
#      1-byte unsigned integer
#      The size of the chunk, in sectors.
#If a location's offset and size are both 0, the chunk has not been generated yet.
#The remaining 4 KiB consists of 1024 timestamps.
#Each timestamp is a 4-byte, big-endian unsigned integer recording the time a particular chunk last updated (in seconds since the unix epoch).
#The index of chunk with chunk coordinates (x,z) can be calculated with the following formula:
#    i=(x%32)+(z%32)*32.
#Conversely, the region-local chunk coordinates (x,z) of a chunk with index i can be calculated like so:
#    z,x = divmod(i,32)
#Chunks are stored as compressed NBT documents.
#At the start of each chunk is a 5 byte header consisting of two parts:
#    * Size:
#      4-byte, big-endian unsigned integer
#      The size of the compressed data in bytes, plus one for the compression byte.
#    * Compression:
#      1-byte unsigned integer
#      How the chunk is compressed. 1 = gzip, 2 = zlib, 3 = uncompressed.
#      See the COMPRESSION_* enums in lessanvil.compression.

import os
import os.path
import shutil
import tempfile
from logging import getLogger

from lessanvil                import compression, tag
from lessanvil.shared         import CorruptRegionFile, MalformedChunk, IOFailure, u4array, u4bytes, _UI, _CH

log = getLogger( __name__ )

SECTOR_SIZE      = 4096
SLOT_COUNT       = 1024
HEADER_SECTORS   = 2
HEADER_SIZE      = HEADER_SECTORS * SECTOR_SIZE
MAX_SECTOR_COUNT = 255      #The size of a location is a single byte

def slotIndex( x, z ):
    """Returns the slot index of the chunk with chunk coordinates (x, z). Absolute and region-local coordinates give the same result."""
    return ( x & 31 ) + ( z & 31 ) * 32

def sectorCount( length ):
    """Returns the number of sectors needed to store length bytes."""
    return -( -length // SECTOR_SIZE )

class Slot:
    """
    An occupied slot in a region file.
    index is the slot's position in the header (see slotIndex()).
    offset and count give the sectors allocated to the chunk.
    timestamp is the chunk's last modification time.
    data holds the raw contents of the allocated sectors, starting with the chunk header.
    """
    __slots__ = ( "index", "offset", "count", "timestamp", "data" )

    def __init__( self, index, offset, count, timestamp, data ):
        self.index     = index
        self.offset    = offset
        self.count     = count
        self.timestamp = timestamp
        self.data      = data

    def getX( self ):
        """Region-local x coordinate of the chunk, in the range [0,31]."""
        return self.index & 31
    x = property( getX )

    def getZ( self ):
        """Region-local z coordinate of the chunk, in the range [0,31]."""
        return self.index >> 5
    z = property( getZ )

    def payload( self ):
        """
        Returns the bytes to copy when this chunk is kept unchanged.
        This is the chunk header and compressed data if the header is consistent with the allocated sectors,
        or all of the allocated sectors otherwise, so that chunks lessanvil can't make sense of are carried over verbatim.
        """
        d = self.data
        if len( d ) >= 5:
            length = _UI.unpack_from( d )[0]
            if length > 0 and 4 + length <= len( d ):
                return d[ :4 + length ]
        return d

    def __repr__( self ):
        return "Slot({:d}, offset={:d}, count={:d})".format( self.index, self.offset, self.count )

def parseRegion( data ):
    """
    Parses the raw contents of a region file.

    Returns a list of 1024 entries indexed by slot index, each either a Slot or None for empty slots.
    Raises CorruptRegionFile if the file has an invalid size, or if any slot points into the header,
    outside of the file, or at sectors used by another slot.
    """
    size = len( data )
    slots = [ None ] * SLOT_COUNT
    if size % SECTOR_SIZE != 0:
        raise CorruptRegionFile( "file size {:d} is not a multiple of {:d}".format( size, SECTOR_SIZE ) )
    if size < HEADER_SIZE:
        raise CorruptRegionFile( "file size {:d} is too small to hold the header".format( size ) )
    sectors = size // SECTOR_SIZE

    #Read locations and timestamps
    locations  = u4array( data[ :SECTOR_SIZE ] )
    timestamps = u4array( data[ SECTOR_SIZE:HEADER_SIZE ] )

    for i in range( SLOT_COUNT ):
        loc = locations[i]
        if loc == 0:
            continue

        offset = ( loc & 0xFFFFFF00 ) >> 8
        count  = ( loc & 0x000000FF )

        if offset < HEADER_SECTORS:
            raise CorruptRegionFile( "slot {:d} points into the header (sector {:d})".format( i, offset ) )
        if count == 0:
            raise CorruptRegionFile( "slot {:d} has a sector count of 0".format( i ) )
        if offset + count > sectors:
            raise CorruptRegionFile( "slot {:d} (sectors {:d}-{:d}) runs past the end of the file ({:d} sectors)".format( i, offset, offset + count - 1, sectors ) )

        slots[i] = Slot( i, offset, count, timestamps[i], data[ offset * SECTOR_SIZE:( offset + count ) * SECTOR_SIZE ] )

    #Walk the slots by offset (so we're always looking in a forward direction) to find overlaps
    previous = None
    for s in sorted( ( s for s in slots if s is not None ), key=lambda s: s.offset ):
        if previous is not None and s.offset < previous.offset + previous.count:
            raise CorruptRegionFile( "slots {:d} and {:d} overlap".format( previous.index, s.index ) )
        previous = s

    return slots

def readFile( path ):
    """Returns the contents of the region file at path. Raises IOFailure if it can't be read."""
    try:
        with open( path, "rb" ) as file:
            return file.read()
    except OSError as e:
        raise IOFailure( path, "read" ) from e

def readRegion( path ):
    """
    Reads and parses the region file at path.
    Returns a tuple, ( data, slots ), where data is the raw contents of the file and slots is as returned by parseRegion().
    """
    data = readFile( path )
    return data, parseRegion( data )

def readChunkHeader( raw ):
    """
    Reads the header of a chunk's raw sector data.
    Returns a tuple, ( length, scheme ), where length counts the compression byte and the compressed data.
    Raises MalformedChunk if the header doesn't fit in the data.
    """
    if len( raw ) < _CH.size:
        raise MalformedChunk( "chunk header is truncated" )
    length, scheme = _CH.unpack_from( raw )
    if length == 0:
        raise MalformedChunk( "chunk has a length of 0" )
    if 4 + length > len( raw ):
        raise MalformedChunk( "chunk length {:d} runs past its {:d} allocated sectors".format( length, sectorCount( len( raw ) ) ) )
    return length, scheme

def chunkScheme( raw ):
    """Returns the compression scheme of a chunk's raw sector data."""
    return readChunkHeader( raw )[1]

def decodeChunk( raw ):
    """
    Returns the decompressed NBT data of a chunk's raw sector data.
    Raises MalformedChunk, UnsupportedCompression or DecompressionFailed if this isn't possible.
    """
    length, scheme = readChunkHeader( raw )
    return compression.decode( scheme, raw[ _CH.size:4 + length ] )

def chunkTree( raw ):
    """Decodes a chunk's raw sector data into an NBTDocument."""
    return decodeTree( decodeChunk( raw ) )

def decodeTree( data ):
    """
    Decodes a chunk's decompressed data into an NBTDocument.
    Raises MalformedChunk if the data continues past the root tag, and MalformedTag if the tree itself is malformed.
    """
    doc, end = tag.decodePrefix( data )
    if end != len( data ):
        raise MalformedChunk( "{:d} bytes of trailing data after the chunk's root tag".format( len( data ) - end ) )
    return doc

def frameChunk( scheme, compressed ):
    """Prefixes compressed chunk data with a chunk header."""
    return _CH.pack( len( compressed ) + 1, scheme ) + compressed

def buildRegion( slots, payloads ):
    """
    Builds the contents of a new region file.

    slots is a list of 1024 Slots / Nones as returned by parseRegion(). Timestamps are carried over from it.
    payloads is a list of 1024 entries: None for empty or removed slots, otherwise the chunk header and data to store (see Slot.payload()).
    Chunks are laid out in slot order directly after the header, each padded to a whole number of sectors.
    Raises MalformedChunk if a payload is too large to be described by a location.
    """
    locations  = [ 0 ] * SLOT_COUNT
    timestamps = [ 0 ] * SLOT_COUNT
    body = bytearray()
    sector = HEADER_SECTORS

    for i in range( SLOT_COUNT ):
        p = payloads[i]
        if p is None:
            continue

        count = sectorCount( len( p ) )
        if count == 0:
            raise MalformedChunk( "slot {:d} has an empty payload".format( i ) )
        if count > MAX_SECTOR_COUNT:
            raise MalformedChunk( "slot {:d} needs {:d} sectors, more than a location can describe".format( i, count ) )

        locations[i] = ( sector << 8 ) | count
        s = slots[i]
        if s is not None:
            timestamps[i] = s.timestamp

        body += p
        body += bytes( count * SECTOR_SIZE - len( p ) )
        sector += count

    return u4bytes( locations ) + u4bytes( timestamps ) + bytes( body )

def writeRegion( path, data ):
    """
    Replaces the region file at path with data.

    data is written to a temporary file in the same directory, which is then renamed over the original,
    so the original is either untouched or completely replaced.
    Raises IOFailure if anything goes wrong; the temporary file is removed in that case.
    """
    directory, name = os.path.split( os.path.abspath( path ) )
    try:
        fd, tmp = tempfile.mkstemp( prefix=name + ".", suffix=".tmp", dir=directory )
    except OSError as e:
        raise IOFailure( path, "create a temporary file for" ) from e

    try:
        with os.fdopen( fd, "wb" ) as file:
            file.write( data )
            file.flush()
            os.fsync( file.fileno() )
        shutil.copymode( path, tmp )
        os.replace( tmp, path )
    except OSError as e:
        try:
            os.remove( tmp )
        except OSError:
            log.warning( "Could not remove temporary file \"%s\".", tmp )
        raise IOFailure( path, "write" ) from e
