"""SQLAlchemy ORM models.

Models represent database tables:
- profiles, profile_badge_claims, profile_private: members, their Q5 badge
  claims and owner-only contact details
- connections: entanglement requests and accepted connections
- organizations, org_members, org_follows: companies and research groups
- posts, post_likes, post_comments: the social feed
- qna_questions, qna_answers, qna_votes, qna_answer_votes: the Q&A forum
- dm_threads, dm_messages: direct messaging
- jobs, products, saved_jobs, saved_products: marketplaces
- search_documents: embedded text for the assistant
"""

from quantum5ocial.models.profile import Profile, ProfileBadgeClaim, ProfilePrivate
from quantum5ocial.models.connection import Connection
from quantum5ocial.models.organization import OrgFollow, OrgMember, Organization
from quantum5ocial.models.post import Post, PostComment, PostLike
from quantum5ocial.models.qna import QnaAnswer, QnaAnswerVote, QnaQuestion, QnaVote
from quantum5ocial.models.message import DmMessage, DmThread
from quantum5ocial.models.marketplace import Job, Product, SavedJob, SavedProduct
from quantum5ocial.models.search_document import SearchDocument

__all__ = [
    "Profile",
    "ProfileBadgeClaim",
    "ProfilePrivate",
    "Connection",
    "Organization",
    "OrgMember",
    "OrgFollow",
    "Post",
    "PostLike",
    "PostComment",
    "QnaQuestion",
    "QnaAnswer",
    "QnaVote",
    "QnaAnswerVote",
    "DmThread",
    "DmMessage",
    "Job",
    "Product",
    "SavedJob",
    "SavedProduct",
    "SearchDocument",
]
