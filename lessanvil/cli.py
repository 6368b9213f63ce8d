"""
Command-line interface.

    lessanvil -w path/to/world -m 60

removes every chunk of the world that players have spent at most 60 seconds in.
"""
import argparse
import json
import logging
import sys

from lessanvil.filter  import MISSING_KEEP, MISSING_REMOVE
from lessanvil.process import Config, execute
from lessanvil.world   import DIMENSION_NAMES, isWorld

#InhabitedTime counts game ticks
TICKS_PER_SECOND = 20

def secondsToThreshold( seconds ):
    """
    Converts a --max-inhabited-time in seconds to a threshold in ticks.
    Chunks inhabited for exactly that many seconds are removed too, hence the extra tick.
    """
    return seconds * TICKS_PER_SECOND + 1

def _dimension( s ):
    d = DIMENSION_NAMES.get( s.lower() )
    if d is not None:
        return d
    try:
        return int( s )
    except ValueError:
        raise argparse.ArgumentTypeError( "unknown dimension \"{}\" (expected {} or a dimension ID)".format( s, ", ".join( DIMENSION_NAMES ) ) ) from None

def _nonNegative( s ):
    v = int( s )
    if v < 0:
        raise argparse.ArgumentTypeError( "must not be negative" )
    return v

def _positive( s ):
    v = int( s )
    if v < 1:
        raise argparse.ArgumentTypeError( "must be at least 1" )
    return v

def _humanBytes( n ):
    for unit in ( "B", "KiB", "MiB", "GiB" ):
        if abs( n ) < 1024:
            return "{:.1f} {}".format( n, unit ) if unit != "B" else "{:d} B".format( n )
        n /= 1024
    return "{:.1f} TiB".format( n )

def makeParser():
    ap = argparse.ArgumentParser( prog="lessanvil", description="Shrinks a Minecraft world by removing chunks players have barely spent any time in." )
    ap.add_argument( "-w", "--world-folder", required=True, help="Path to the world folder (contains level.dat)" )
    ap.add_argument( "-m", "--max-inhabited-time", type=_nonNegative, default=0, metavar="SECONDS", help="Remove chunks inhabited for at most this many seconds (default: 0)" )
    ap.add_argument( "-t", "--thread-count", type=_positive, default=None, metavar="THREADS", help="Number of region files to process at once (default: one per CPU)" )
    ap.add_argument( "-d", "--dimension", type=_dimension, action="append", metavar="DIM", help="Only process this dimension (overworld, nether, end or an ID); can be repeated" )
    ap.add_argument( "--dry-run", action="store_true", help="Report what would be removed without changing anything" )
    ap.add_argument( "--confirm", action="store_true", help="Don't ask for confirmation" )
    ap.add_argument( "--force", action="store_true", help="Process the folder even if it doesn't look like a world" )
    ap.add_argument( "--json", action="store_true", help="Print progress and the report as JSON lines" )
    ap.add_argument( "--recompress", action="store_true", help="Re-encode every kept chunk" )
    ap.add_argument( "--remove-missing", action="store_true", help="Remove chunks that have no InhabitedTime (they are kept by default)" )
    ap.add_argument( "-v", "--verbose", action="count", default=0, help="Log more; repeat for debug output" )
    return ap

def _printJSON( obj ):
    print( json.dumps( obj ), flush=True )

def main( argv=None ):
    args = makeParser().parse_args( argv )

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig( format="%(levelname)s:%(message)s", level=level )

    world = args.world_folder
    if not isWorld( world ) and not args.force:
        print( "\"{}\" doesn't look like a world folder (no level.dat or region folder). Use --force to process it anyway.".format( world ), file=sys.stderr )
        return 1

    config = Config(
        world,
        secondsToThreshold( args.max_inhabited_time ),
        dryRun     = args.dry_run,
        dimensions = args.dimension,
        threads    = args.thread_count,
        missing    = MISSING_REMOVE if args.remove_missing else MISSING_KEEP,
        recompress = args.recompress
    )

    if not ( args.confirm or args.dry_run ):
        try:
            answer = input( "This will permanently remove chunks from \"{}\". Make a backup first! Continue? [y/N] ".format( world ) )
        except EOFError:
            #No terminal to answer from
            answer = ""
        if answer.strip().lower() not in ( "y", "yes" ):
            print( "Aborting." )
            return 1

    if args.json:
        def progress( report, done, total ):
            _printJSON( { "processing": { "progress": done / total } } )
    else:
        def progress( report, done, total ):
            print( "\rProcessed {:d}/{:d} region files".format( done, total ), end="", file=sys.stderr, flush=True )

    try:
        report = execute( config, progress )
    except KeyboardInterrupt:
        print( "\nAborting.", file=sys.stderr )
        return 130
    except FileNotFoundError as e:
        print( e, file=sys.stderr )
        return 1

    if args.json:
        _printJSON( { "finished": { "report": report.toJSON() } } )
    else:
        if report.totalRegions > 0:
            print( file=sys.stderr )
        for r in report.hardFailures:
            print( "Skipped {}: {}".format( r.path, r.error ), file=sys.stderr )
        print( "{} {:d} of {:d} chunks in {:d} region files, freeing {} in {:.1f}s.".format(
            "Would remove" if args.dry_run else "Removed",
            report.totalRemoved, report.totalChunks, report.totalRegions,
            _humanBytes( report.freedSpace ), report.timeTaken
        ) )

    if report.cancelled:
        return 130
    return 0 if report.ok else 1
