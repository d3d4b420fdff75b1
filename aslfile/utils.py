"""
Misc utility functions
"""
import io

class Tee(object):
    """
    Log stream which keeps a copy of everything written to it
    and passes it on to any number of other streams
    """

    def __init__(self, *streams):
        self._streams = [io.StringIO(),]
        self._streams.extend(streams)

    def write(self, text):
        for stream in self._streams:
            stream.write(text)

    def flush(self):
        for stream in self._streams:
            stream.flush()

    def __str__(self):
        return self._streams[0].getvalue()
