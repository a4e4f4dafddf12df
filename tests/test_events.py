import unittest

from resume_pilot.utils.events import (
    Notification, NotificationChannel, NotificationInbox, PERSISTENCE_ERROR, MAIL_ERROR
)

class TestNotificationChannel(unittest.TestCase):

    def setUp(self):
        self.channel = NotificationChannel()

    def test_publish_reaches_topic_subscribers_only(self):
        errors, mail = NotificationInbox(), NotificationInbox()
        self.channel.subscribe(PERSISTENCE_ERROR, errors)
        self.channel.subscribe(MAIL_ERROR, mail)

        self.channel.publish(Notification(PERSISTENCE_ERROR, "Permission denied", "Could not save"))

        self.assertEqual(len(errors), 1)
        self.assertEqual(len(mail), 0)

    def test_unsubscribe(self):
        inbox = NotificationInbox()
        unsubscribe = self.channel.subscribe(PERSISTENCE_ERROR, inbox)
        unsubscribe()
        unsubscribe()

        self.channel.publish(Notification(PERSISTENCE_ERROR, "t", "m"))

        self.assertEqual(len(inbox), 0)

    def test_failing_subscriber_does_not_block_others(self):
        def broken(notification):
            raise RuntimeError("subscriber bug")

        inbox = NotificationInbox()
        self.channel.subscribe(PERSISTENCE_ERROR, broken)
        self.channel.subscribe(PERSISTENCE_ERROR, inbox)

        self.channel.publish(Notification(PERSISTENCE_ERROR, "t", "m"))

        self.assertEqual(len(inbox), 1)

    def test_publish_without_subscribers(self):
        self.channel.publish(Notification(MAIL_ERROR, "t", "m"))

class TestNotificationInbox(unittest.TestCase):

    def test_drain_empties_inbox(self):
        inbox = NotificationInbox()
        inbox(Notification(PERSISTENCE_ERROR, "first", "m"))
        inbox(Notification(PERSISTENCE_ERROR, "second", "m"))

        drained = inbox.drain()

        self.assertEqual([n.title for n in drained], ["first", "second"])
        self.assertEqual(inbox.drain(), [])

    def test_inbox_is_bounded(self):
        inbox = NotificationInbox(maxlen=2)
        for i in range(5):
            inbox(Notification(PERSISTENCE_ERROR, str(i), "m"))

        self.assertEqual([n.title for n in inbox.drain()], ["3", "4"])

if __name__ == '__main__':
    unittest.main()
