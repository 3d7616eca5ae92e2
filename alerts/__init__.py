"""Alert system module."""
from alerts.evaluator import AlertEvaluator
from alerts.lifecycle import AlertLifecycleManager, COOLDOWN_MS, MAX_ALERTS
from alerts.channels import ConsoleChannel, FileChannel, SoundChannel, NotificationSink
