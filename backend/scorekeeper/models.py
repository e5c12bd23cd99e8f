from scorekeeper import db
import json
import time


class Tournament(db.Model):
    """One tournament document, addressed only by its passcode."""
    __tablename__ = 'tournament'
    passcode = db.Column(db.String(4), primary_key=True)
    document = db.Column(db.Text, nullable=False)  # JSON-encoded tournament state
    created_at = db.Column(db.Float, nullable=False, default=time.time)
    updated_at = db.Column(db.Float, nullable=False, default=time.time, onupdate=time.time)

    def load(self):
        return json.loads(self.document)

    def dump(self, document):
        self.document = json.dumps(document)

    def to_dict(self):
        return {
            'passcode': self.passcode,
            'state': self.load(),
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }
