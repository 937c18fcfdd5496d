from __future__ import annotations

from django.urls import path

from realtime import views

urlpatterns = [
    path("groups/broadcast/", views.GroupBroadcastView.as_view(), name="realtime-group-broadcast"),
    path("users/send/", views.UserMessageView.as_view(), name="realtime-user-send"),
]
