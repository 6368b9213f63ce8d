"""Builds chunks, region files and worlds in memory for the tests."""
import os
import os.path
from array import array

import lessanvil
from lessanvil import compression, tag
from lessanvil.region import Slot, SLOT_COUNT, buildRegion, frameChunk

def makeChunk( inhabited=None, legacy=False, x=0, z=0 ):
    """
    Returns an NBTDocument resembling a real chunk.
    inhabited is stored as a TAG_Long InhabitedTime in the root compound, or in a "Level" compound if legacy is True.
    If inhabited is None, the chunk has no InhabitedTime.
    """
    doc = lessanvil.NBTDocument( "" )
    doc["DataVersion"] = lessanvil.TAG_Int( 3465 )
    body = doc
    if legacy:
        body = lessanvil.TAG_Compound()
        doc["Level"] = body
    body["xPos"]   = lessanvil.TAG_Int( x )
    body["zPos"]   = lessanvil.TAG_Int( z )
    body["Status"] = lessanvil.TAG_String( "minecraft:full" )

    heightmaps = lessanvil.TAG_Compound()
    heightmaps["WORLD_SURFACE"] = lessanvil.TAG_Long_Array( array( "q", range( 37 ) ) )
    body["Heightmaps"] = heightmaps

    sections = lessanvil.TAG_List()
    for y in range( -4, 0 ):
        section = lessanvil.TAG_Compound()
        section["Y"] = lessanvil.TAG_Byte( y )
        section["BlockLight"] = lessanvil.TAG_Byte_Array( bytes( 2048 ) )
        sections.append( section )
    body["sections"] = sections

    if inhabited is not None:
        body["InhabitedTime"] = lessanvil.TAG_Long( inhabited )
    body["LastUpdate"] = lessanvil.TAG_Long( 123456 )
    return doc

def chunkPayload( doc, scheme=compression.COMPRESSION_ZLIB ):
    """Returns doc compressed with scheme, prefixed with a chunk header."""
    return frameChunk( scheme, compression.encode( scheme, tag.encode( doc ) ) )

def makeRegion( payloads, timestamps=None ):
    """
    Returns the contents of a region file.
    payloads maps slot indices to framed chunk data (see chunkPayload()).
    timestamps optionally maps slot indices to timestamps; by default every chunk's timestamp is 1000 + its index.
    """
    slots = [ None ] * SLOT_COUNT
    p = [ None ] * SLOT_COUNT
    for i, payload in payloads.items():
        ts = 1000 + i if timestamps is None else timestamps[i]
        slots[i] = Slot( i, 0, 0, ts, b"" )
        p[i] = payload
    return buildRegion( slots, p )

def writeFile( path, data ):
    os.makedirs( os.path.dirname( path ), exist_ok=True )
    with open( path, "wb" ) as file:
        file.write( data )

def readFile( path ):
    with open( path, "rb" ) as file:
        return file.read()

def makeWorld( root, regions ):
    """
    Creates a world in the directory root.
    regions maps paths relative to root (e.g. "DIM-1/region/r.0.0.mca") to region file contents.
    """
    level = lessanvil.NBTDocument( "" )
    level["Data"] = lessanvil.TAG_Compound()
    writeFile( os.path.join( root, "level.dat" ), compression.encode( compression.COMPRESSION_GZIP, tag.encode( level ) ) )
    os.makedirs( os.path.join( root, "region" ), exist_ok=True )
    for rel, data in regions.items():
        writeFile( os.path.join( root, *rel.split( "/" ) ), data )
