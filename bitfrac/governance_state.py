"""
Proposal and vote records.
"""

STATUS_OPEN = 'open'
STATUS_CLOSED = 'closed'
STATUS_EXECUTED = 'executed'


class Proposal:
    """
    A holder proposal for one asset.

    Lifecycle: open while height < end_height, closed afterwards, executed
    once execute_proposal succeeds. Tallies only ever grow.
    """

    def __init__(self, data: dict):
        self.proposal_id = int(data['proposal_id'])
        self.title = data['title']
        self.asset_id = int(data['asset_id'])
        self.creator = bytes(data['creator'])
        self.start_height = int(data['start_height'])
        self.end_height = int(data['end_height'])
        self.executed = bool(data.get('executed', False))
        self.votes_for = int(data.get('votes_for', 0))
        self.votes_against = int(data.get('votes_against', 0))
        self.minimum_votes = int(data['minimum_votes'])

        if self.end_height <= self.start_height:
            raise ValueError("Proposal must end after it starts")

    def to_dict(self) -> dict:
        return {
            'proposal_id': self.proposal_id,
            'title': self.title,
            'asset_id': self.asset_id,
            'creator': self.creator,
            'start_height': self.start_height,
            'end_height': self.end_height,
            'executed': self.executed,
            'votes_for': self.votes_for,
            'votes_against': self.votes_against,
            'minimum_votes': self.minimum_votes,
        }

    @property
    def total_votes(self) -> int:
        return self.votes_for + self.votes_against

    def status(self, height: int) -> str:
        if self.executed:
            return STATUS_EXECUTED
        if height < self.end_height:
            return STATUS_OPEN
        return STATUS_CLOSED

    def is_open(self, height: int) -> bool:
        return self.status(height) == STATUS_OPEN

    def has_quorum(self) -> bool:
        return self.total_votes >= self.minimum_votes

    def has_majority(self) -> bool:
        # Ties do not pass
        return self.votes_for > self.votes_against

    def __repr__(self) -> str:
        return (
            f"Proposal(id={self.proposal_id}, asset={self.asset_id}, "
            f"for={self.votes_for}, against={self.votes_against}, "
            f"quorum={self.minimum_votes}, executed={self.executed})"
        )


class Vote:
    def __init__(self, data: dict):
        self.amount = int(data['amount'])
        self.vote_for = bool(data['vote_for'])
        self.height = int(data['height'])

    def to_dict(self) -> dict:
        return {
            'amount': self.amount,
            'vote_for': self.vote_for,
            'height': self.height,
        }

    def __repr__(self) -> str:
        direction = 'for' if self.vote_for else 'against'
        return f"Vote({direction}, amount={self.amount}, height={self.height})"
