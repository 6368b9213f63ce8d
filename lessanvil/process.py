"""
Removes rarely visited chunks from every region file of a world.

Each region file is handled independently: it is read, every chunk in it is kept or removed, and if anything was removed
the file is rebuilt and atomically replaced.
Region files are processed in parallel on a thread pool; each one produces a RegionReport, and the reports are gathered into a Report.
"""
import errno
import os
import os.path
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from logging import getLogger

from lessanvil          import compression, tag
from lessanvil.filter   import KEEP, REMOVE, MISSING_KEEP, MISSING_REMOVE, DECISION_NAMES, getActivity, scanActivity, decideActivity
from lessanvil.region   import MAX_SECTOR_COUNT, SLOT_COUNT, parseRegion, readFile, writeRegion, buildRegion, decodeChunk, decodeTree, chunkScheme, frameChunk, sectorCount
from lessanvil.shared   import LessAnvilError, ChunkError
from lessanvil.world    import iterDimensions, iterRegionFiles

log = getLogger( __name__ )

class Config:
    """
    Settings for a run.

    worldPath is the world directory.
    threshold is an InhabitedTime in game ticks; chunks inhabited for less than this are removed.
    dryRun reports what would be removed without writing anything.
    dimensions is None to process every dimension, or an iterable of the IDs of the dimensions to process.
    threads is the number of region files processed at once; None uses one thread per CPU.
    missing decides what happens to chunks without an InhabitedTime (MISSING_KEEP or MISSING_REMOVE).
    recompress re-encodes every kept chunk, instead of copying it over as it is.
    """
    __slots__ = ( "worldPath", "threshold", "dryRun", "dimensions", "threads", "missing", "recompress" )

    def __init__( self, worldPath, threshold, dryRun=False, dimensions=None, threads=None, missing=MISSING_KEEP, recompress=False ):
        if isinstance( threshold, bool ) or not isinstance( threshold, int ):
            raise TypeError( "threshold must be an int, got {!r}".format( threshold ) )
        if threshold < 0:
            raise ValueError( "threshold must not be negative, got {:d}".format( threshold ) )
        if threads is not None and threads < 1:
            raise ValueError( "threads must be at least 1, got {:d}".format( threads ) )
        if missing not in ( MISSING_KEEP, MISSING_REMOVE ):
            raise ValueError( "missing must be MISSING_KEEP or MISSING_REMOVE, got {!r}".format( missing ) )

        self.worldPath  = worldPath
        self.threshold  = threshold
        self.dryRun     = dryRun
        self.dimensions = None if dimensions is None else frozenset( dimensions )
        self.threads    = threads
        self.missing    = missing
        self.recompress = recompress

class RegionReport:
    """
    What happened to a single region file.

    error is None if the file was processed, or a description of why it was skipped.
    warnings lists problems with individual chunks; those chunks were kept.
    rewritten is True if the file on disk was replaced.
    """
    __slots__ = ( "path", "chunksTotal", "chunksRemoved", "bytesBefore", "bytesAfter", "error", "warnings", "rewritten" )

    def __init__( self, path ):
        self.path          = path
        self.chunksTotal   = 0
        self.chunksRemoved = 0
        self.bytesBefore   = 0
        self.bytesAfter    = 0
        self.error         = None
        self.warnings      = []
        self.rewritten     = False

    def getFreedSpace( self ):
        return self.bytesBefore - self.bytesAfter
    freedSpace = property( getFreedSpace )

    def toJSON( self ):
        return {
            "path":           self.path,
            "chunks":         self.chunksTotal,
            "deleted_chunks": self.chunksRemoved,
            "bytes_before":   self.bytesBefore,
            "bytes_after":    self.bytesAfter,
            "rewritten":      self.rewritten,
            "error":          self.error,
            "warnings":       list( self.warnings )
        }

class Report:
    """The RegionReports of a whole run, plus totals."""
    def __init__( self ):
        self.regions   = []
        self.timeTaken = 0.0
        self.cancelled = False

    def getTotalRegions( self ):
        return len( self.regions )
    totalRegions = property( getTotalRegions )

    def getTotalChunks( self ):
        return sum( r.chunksTotal for r in self.regions )
    totalChunks = property( getTotalChunks )

    def getTotalRemoved( self ):
        return sum( r.chunksRemoved for r in self.regions )
    totalRemoved = property( getTotalRemoved )

    def getFreedSpace( self ):
        return sum( r.freedSpace for r in self.regions )
    freedSpace = property( getFreedSpace )

    def getHardFailures( self ):
        """Region files that were skipped because of an error."""
        return [ r for r in self.regions if r.error is not None ]
    hardFailures = property( getHardFailures )

    def getSoftFailures( self ):
        """Region files that were processed, but had chunks that couldn't be examined."""
        return [ r for r in self.regions if r.error is None and r.warnings ]
    softFailures = property( getSoftFailures )

    def getOK( self ):
        """True if the run finished and every region file was processed."""
        return not self.cancelled and not self.hardFailures
    ok = property( getOK )

    def toJSON( self ):
        return {
            "time_taken":           self.timeTaken,
            "total_freed_space":    self.freedSpace,
            "total_regions":        self.totalRegions,
            "total_chunks":         self.totalChunks,
            "total_deleted_chunks": self.totalRemoved,
            "cancelled":            self.cancelled,
            "failed_regions":       [ { "path": r.path, "error": r.error } for r in self.hardFailures ],
            "warnings":             [ { "path": r.path, "warnings": list( r.warnings ) } for r in self.softFailures ]
        }

def _examine( slot, config ):
    """
    Decides whether to keep the chunk in slot.
    Returns a tuple, ( decision, activity, payload ), where payload is what to store if the chunk is kept.
    Raises ChunkError if the chunk can't be read.
    """
    raw = slot.data
    data = decodeChunk( raw )

    if not config.recompress:
        activity = scanActivity( data )
        decision = decideActivity( activity, config.threshold, config.missing )
        if decision == REMOVE:
            #The scan stops early; only remove chunks that decode completely
            decodeTree( data )
        return decision, activity, slot.payload()

    tree = decodeTree( data )
    activity = getActivity( tree )
    decision = decideActivity( activity, config.threshold, config.missing )
    if decision == REMOVE:
        return decision, activity, None

    encoded = tag.encode( tree )
    if encoded != data:
        #Can happen for floats holding NaNs with unusual payloads
        log.debug( "Chunk (%d, %d) does not re-encode identically; copying it over as it is.", slot.x, slot.z )
        return decision, activity, slot.payload()

    scheme = compression.reencodeScheme( chunkScheme( raw ) )
    payload = frameChunk( scheme, compression.encode( scheme, encoded ) )
    if sectorCount( len( payload ) ) > MAX_SECTOR_COUNT:
        return decision, activity, slot.payload()
    return decision, activity, payload

def processRegion( data, config, report=None ):
    """
    Decides the fate of every chunk in a region file's contents, data.

    Fills in report (a new RegionReport if None) and returns a tuple, ( report, newData ),
    where newData is the contents of the rebuilt region file, or None if the file doesn't need to change.
    Chunks that can't be examined are kept and described in report.warnings.
    Raises CorruptRegionFile if the region file's header can't be trusted.
    """
    if report is None:
        report = RegionReport( None )
    report.bytesBefore = report.bytesAfter = len( data )

    slots = parseRegion( data )
    payloads = [ None ] * SLOT_COUNT
    changed = False

    for slot in slots:
        if slot is None:
            continue
        report.chunksTotal += 1

        try:
            decision, activity, payload = _examine( slot, config )
        except ChunkError as e:
            message = "chunk ({:d}, {:d}): {}".format( slot.x, slot.z, e )
            log.warning( "%s: %s", report.path, message )
            report.warnings.append( message )
            payloads[ slot.index ] = slot.payload()
            continue

        log.debug( "%s: chunk (%d, %d) inhabited for %s ticks: %s", report.path, slot.x, slot.z, activity, DECISION_NAMES[ decision ] )
        if decision == KEEP:
            payloads[ slot.index ] = payload
            if config.recompress and payload != slot.payload():
                changed = True
        else:
            report.chunksRemoved += 1
            changed = True

    if not changed:
        return report, None

    newData = buildRegion( slots, payloads )
    report.bytesAfter = len( newData )
    return report, newData

def processRegionFile( path, config ):
    """
    Processes the region file at path and returns a RegionReport.
    The file is replaced only if chunks were removed (or re-encoded), and never during a dry run.
    Errors are recorded in the returned report rather than raised.
    """
    report = RegionReport( path )
    try:
        data = readFile( path )
        report, newData = processRegion( data, config, report )
        if newData is not None and not config.dryRun:
            writeRegion( path, newData )
            report.rewritten = True
            log.info( "%s: removed %d of %d chunks, %d bytes freed.", path, report.chunksRemoved, report.chunksTotal, report.freedSpace )
    except LessAnvilError as e:
        log.error( "%s: %s", path, e )
        report.error = str( e )
        report.chunksRemoved = 0
        report.bytesAfter = report.bytesBefore
    return report

def collectRegionFiles( config ):
    """Returns a sorted list of the region files in the dimensions of config.worldPath that config selects."""
    paths = []
    for dim, path in iterDimensions( config.worldPath ):
        if config.dimensions is None or dim in config.dimensions:
            paths.extend( iterRegionFiles( path ) )
    paths.sort()
    return paths

def execute( config, progress=None, cancel=None ):
    """
    Processes every region file config selects and returns a Report.

    progress, if given, is called as progress( report, done, total ) each time a region file is finished.
    cancel, if given, is a threading.Event; once it is set, region files that haven't been started yet are skipped
    and the report is marked as cancelled. Region files that are being processed are always finished.
    If KeyboardInterrupt is raised while waiting, pending region files are cancelled, running ones are waited for, and the exception propagates.
    Raises FileNotFoundError if config.worldPath isn't a directory.
    """
    if not os.path.isdir( config.worldPath ):
        raise FileNotFoundError( errno.ENOENT, "World folder not found", config.worldPath )

    paths = collectRegionFiles( config )
    total = len( paths )
    report = Report()
    start = time.monotonic()

    def work( path ):
        if cancel is not None and cancel.is_set():
            return None
        return processRegionFile( path, config )

    executor = ThreadPoolExecutor( max_workers=config.threads or os.cpu_count() or 1 )
    try:
        futures = [ executor.submit( work, path ) for path in paths ]
        done = 0
        for future in as_completed( futures ):
            r = future.result()
            if r is None:
                report.cancelled = True
            else:
                report.regions.append( r )
            done += 1
            if progress is not None:
                progress( report, done, total )
    except KeyboardInterrupt:
        executor.shutdown( wait=True, cancel_futures=True )
        raise
    finally:
        executor.shutdown( wait=True )
        report.regions.sort( key=lambda r: r.path )
        report.timeTaken = time.monotonic() - start

    return report
