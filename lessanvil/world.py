"""
Finds the region files of a Minecraft world.

A world can have several dimensions.
The overworld's region files are in <world>/region; every other dimension has its own directory,
<world>/DIM<id>, with region files in <world>/DIM<id>/region.
"""
import os
import os.path
import re

#Dimension IDs for the Overworld, Nether, and End
DIM_NETHER    = -1
DIM_OVERWORLD =  0
DIM_END       =  1

#Maps names accepted on the command line to dimension IDs
DIMENSION_NAMES = {
    "overworld": DIM_OVERWORLD,
    "nether":    DIM_NETHER,
    "end":       DIM_END
}

#Regular expression that matches Anvil filenames; i.e. filenames of the form "r.{x}.{z}.mca" (where x and z are region coordinates)
RE_FILENAME = re.compile( r"^r\.(-?\d+)\.(-?\d+)\.mca$", re.IGNORECASE )

def isWorld( path ):
    """Returns True if path looks like a world directory (it has a level.dat and a region directory)."""
    return os.path.isfile( os.path.join( path, "level.dat" ) ) and os.path.isdir( os.path.join( path, "region" ) )

def getDimensionID( path ):
    """
    Given a dimension directory path, returns the dimension's ID if the directory's name is of the form "DIM{n}" (where n is the ID#).
    Otherwise, returns None.
    """
    name = os.path.basename( path ).upper()
    if name.startswith( "DIM" ):
        try:
            return int( name[3:] )
        except ValueError:
            pass
    return None

def iterDimensions( path ):
    """
    Iterates over every dimension in the world at path, yielding ( id, dimension directory ) tuples.
    The overworld comes first; other dimensions follow in order of their IDs.
    """
    if not os.path.isdir( path ):
        return

    #DIM0 is the overworld; its directory is the world directory.
    yield DIM_OVERWORLD, path

    #For non-overworld dimensions, scan the world directory for directories named "DIM{id}", where id is the dimension's ID (e.g. DIM-1, DIM1, etc).
    found = []
    with os.scandir( path ) as entries:
        for entry in entries:
            if entry.is_dir():
                i = getDimensionID( entry.path )
                #Ignore the "DIM0" directory if it exists;
                #This is typically created by mods that wrongly assume the overworld's directory.
                if i is not None and i != DIM_OVERWORLD:
                    found.append( ( i, entry.path ) )
    found.sort()
    yield from found

def iterRegionFiles( path ):
    """Iterates over the paths of every region file in the dimension directory at path, in name order."""
    path = os.path.join( path, "region" )
    if not os.path.isdir( path ):
        return

    with os.scandir( path ) as entries:
        names = sorted( entry.name for entry in entries if entry.is_file() and RE_FILENAME.fullmatch( entry.name ) )
    for name in names:
        yield os.path.join( path, name )

def regionCoords( path ):
    """
    Returns the region coordinates ( rx, rz ) encoded in a region file's name.
    Raises ValueError if the name isn't a region filename.
    """
    match = RE_FILENAME.fullmatch( os.path.basename( path ) )
    if match is None:
        raise ValueError( "\"{}\" is not a region filename.".format( path ) )
    return int( match.group( 1 ) ), int( match.group( 2 ) )
