from lessanvil.parse import _StopParsingNBT

class NBTHandler:
    """
    Receives events from lessanvil.parse().

    Every callback here does nothing, so a handler only overrides the events it cares about.
    Named tags in a compound produce a name() event followed by the tag's own events;
    entries of a TAG_List produce only the tag's own events.
    """
    def name( self, tagType, name ):
        """A named tag header was read: the next events describe a tag of type tagType called name."""
        pass
    def start( self ):
        """The root's name() has been reported and the root TAG_Compound's entries are about to be read."""
        pass
    def end( self ):
        """The document was read to the end. Nothing else is called after this."""
        pass
    def byte( self, value ):
        """TAG_Byte; value is an int in [-128, 127]."""
        pass
    def short( self, value ):
        """TAG_Short; value is an int in [-32768, 32767]."""
        pass
    def int( self, value ):
        """TAG_Int; value is an int in [-2**31, 2**31-1]."""
        pass
    def long( self, value ):
        """TAG_Long; value is an int in [-2**63, 2**63-1]."""
        pass
    def float( self, value ):
        pass
    def double( self, value ):
        pass
    def startByteArray( self, length ):
        """A TAG_Byte_Array of length bytes begins; its contents follow in one or more bytes() calls."""
        pass
    def bytes( self, values ):
        """A piece of the current TAG_Byte_Array, at most 4 KiB long."""
        pass
    def endByteArray( self ):
        pass
    def string( self, value ):
        """TAG_String, already decoded to a str."""
        pass
    def startList( self, tagType, length ):
        """
        A TAG_List begins.
        Its length entries, all of type tagType, follow as unnamed events and are closed by endList().
        """
        pass
    def endList( self ):
        pass
    def startCompound( self ):
        """
        A TAG_Compound begins (including the root).
        Its entries follow as name() + tag events and are closed by endCompound().
        """
        pass
    def endCompound( self ):
        pass
    def ints( self, values ):
        """TAG_Int_Array; values is an array.array of signed 4-byte ints, in native byte order."""
        pass
    def longs( self, values ):
        """TAG_Long_Array; values is an array.array of signed 8-byte ints, in native byte order."""
        pass

    def stop( self ):
        """Ends parsing right away; parse() then returns False. Only call this from inside a callback."""
        raise _StopParsingNBT()
