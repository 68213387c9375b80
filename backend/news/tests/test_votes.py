"""
Tests for the vote tally.

These tests verify that:
1. The pure policy produces the right counter deltas
2. Vote rows and Comment counters never drift apart
3. A racing duplicate insert is turned into an update, never a second row
"""

from unittest.mock import patch

from django.test import SimpleTestCase, TestCase

from news.models import Comment, CommentVote, Notification
from news.services import NotFoundError, apply_vote, vote_comment

from .helpers import make_article, make_user

LIKE = CommentVote.VoteType.LIKE
DISLIKE = CommentVote.VoteType.DISLIKE


class ApplyVotePolicyTestCase(SimpleTestCase):

    def test_first_like(self):
        outcome = apply_vote(None, LIKE)
        self.assertEqual((outcome.like_delta, outcome.dislike_delta), (1, 0))
        self.assertEqual(outcome.vote_type, LIKE)
        self.assertEqual(outcome.action, 'created')

    def test_first_dislike(self):
        outcome = apply_vote(None, DISLIKE)
        self.assertEqual((outcome.like_delta, outcome.dislike_delta), (0, 1))
        self.assertEqual(outcome.action, 'created')

    def test_same_type_toggles_off(self):
        outcome = apply_vote(LIKE, LIKE)
        self.assertEqual((outcome.like_delta, outcome.dislike_delta), (-1, 0))
        self.assertIsNone(outcome.vote_type)
        self.assertEqual(outcome.action, 'removed')

        outcome = apply_vote(DISLIKE, DISLIKE)
        self.assertEqual((outcome.like_delta, outcome.dislike_delta), (0, -1))

    def test_switch_moves_one_vote(self):
        outcome = apply_vote(LIKE, DISLIKE)
        self.assertEqual((outcome.like_delta, outcome.dislike_delta), (-1, 1))
        self.assertEqual(outcome.like_delta + outcome.dislike_delta, 0)
        self.assertEqual(outcome.action, 'changed')

        outcome = apply_vote(DISLIKE, LIKE)
        self.assertEqual((outcome.like_delta, outcome.dislike_delta), (1, -1))

    def test_unknown_type_rejected(self):
        with self.assertRaises(ValueError):
            apply_vote(None, 'LOVE')


class VoteCommentTestCase(TestCase):

    def setUp(self):
        self.author = make_user('author@test.com', name='Author')
        self.voter = make_user('voter@test.com', name='Voter')
        self.article = make_article(slug='test-post', author=self.author)
        self.comment = Comment.objects.create(article=self.article, author=self.author, content='Riff!')

    def assertCounters(self, likes, dislikes):
        self.comment.refresh_from_db()
        self.assertEqual((self.comment.likes, self.comment.dislikes), (likes, dislikes))
        self.assertEqual(self.comment.votes.filter(vote_type=LIKE).count(), likes)
        self.assertEqual(self.comment.votes.filter(vote_type=DISLIKE).count(), dislikes)

    def test_like_creates_vote_and_counts(self):
        result = vote_comment(self.voter, self.comment.id, LIKE)

        self.assertEqual(result.outcome.action, 'created')
        self.assertEqual(result.comment.likes, 1)
        self.assertCounters(1, 0)

    def test_like_then_like_toggles_off(self):
        vote_comment(self.voter, self.comment.id, LIKE)
        result = vote_comment(self.voter, self.comment.id, LIKE)

        self.assertEqual(result.outcome.action, 'removed')
        self.assertCounters(0, 0)
        self.assertFalse(CommentVote.objects.exists())

    def test_like_then_dislike_switches(self):
        vote_comment(self.voter, self.comment.id, LIKE)
        result = vote_comment(self.voter, self.comment.id, DISLIKE)

        self.assertEqual(result.outcome.action, 'changed')
        self.assertCounters(0, 1)
        self.assertEqual(CommentVote.objects.count(), 1)

    def test_counters_from_several_users(self):
        other = make_user('other@test.com')
        vote_comment(self.voter, self.comment.id, LIKE)
        vote_comment(other, self.comment.id, DISLIKE)
        vote_comment(self.author, self.comment.id, LIKE)

        self.assertCounters(2, 1)

    def test_missing_comment(self):
        with self.assertRaises(NotFoundError):
            vote_comment(self.voter, 987654, LIKE)

    def test_vote_notifies_comment_author(self):
        vote_comment(self.voter, self.comment.id, LIKE)

        notification = Notification.objects.get(user=self.author)
        self.assertEqual(notification.type, Notification.Type.COMMENT_LIKE)
        self.assertEqual(notification.from_user, self.voter)
        self.assertEqual(notification.comment, self.comment)

    def test_toggle_off_does_not_notify(self):
        vote_comment(self.voter, self.comment.id, LIKE)
        vote_comment(self.voter, self.comment.id, LIKE)

        self.assertEqual(Notification.objects.filter(user=self.author).count(), 1)

    def test_self_vote_does_not_notify(self):
        vote_comment(self.author, self.comment.id, DISLIKE)

        self.assertFalse(Notification.objects.exists())
        self.assertCounters(0, 1)

    def test_racing_duplicate_insert_becomes_update(self):
        """
        Another request inserted the first LIKE between our lookup and our
        insert. The unique constraint rejects our row; the retry applies the
        request to the existing row (LIKE again -> toggle off).
        """
        CommentVote.objects.create(user=self.voter, comment=self.comment, vote_type=LIKE)
        Comment.objects.filter(id=self.comment.id).update(likes=1)

        real_select_for_update = CommentVote.objects.select_for_update
        calls = []

        def stale_first_lookup():
            calls.append(1)
            if len(calls) == 1:
                return CommentVote.objects.none()
            return real_select_for_update()

        with patch.object(CommentVote.objects, 'select_for_update', side_effect=stale_first_lookup):
            result = vote_comment(self.voter, self.comment.id, LIKE)

        self.assertEqual(len(calls), 2)
        self.assertEqual(result.outcome.action, 'removed')
        self.assertCounters(0, 0)
