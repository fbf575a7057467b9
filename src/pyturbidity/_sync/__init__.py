"""Internal building blocks of :class:`pyturbidity.controller.SyncController`.

Owns:
- the subscription registry (start/stop of the watched paths)
- the write pipeline (ordered, non-transactional submissions)
"""
