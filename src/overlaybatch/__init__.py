"""overlaybatch — batch footer overlay and concatenation of remote videos.

Fetch (video, image) pairs from an rclone remote, normalize each video to
one canonical encoding, burn the image in as a footer, and stream-copy
every successful segment into a single published file. A failing pair is
reported and skipped; it never stops the batch.
"""
