from .track import STrack, TrackState

__all__ = ['STrack', 'TrackState']
