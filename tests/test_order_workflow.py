import pytest

from apps.notifications.models import Notification
from apps.orders import services, workflow
from apps.orders.models import OrderStatusHistory
from apps.orders.workflow import InvalidTransition, StaleOrder


def _history(order):
    return list(OrderStatusHistory.objects.filter(order=order).values_list("status", flat=True))


@pytest.mark.django_db
def test_accept_moves_pending_to_preparing_and_logs_history(make_order, staff_user):
    order = make_order(service_type="pickup")

    services.accept(order, user=staff_user)

    order.refresh_from_db()
    assert order.status == "preparing"
    assert order.version == 2
    assert order.estimated_ready_at is not None
    assert _history(order) == ["pending", "preparing"]
    row = OrderStatusHistory.objects.filter(order=order).last()
    assert row.previous_status == "pending"
    assert row.changed_by_type == "user"
    assert row.changed_by_id == str(staff_user.pk)


@pytest.mark.django_db
def test_accept_from_confirmed(make_order):
    order = make_order(status="confirmed")
    services.accept(order)
    assert order.status == "preparing"


@pytest.mark.django_db
def test_second_accept_is_rejected(make_order):
    order = make_order()
    services.accept(order)

    stale_copy = type(order).objects.get(pk=order.pk)
    stale_copy.status = "pending"  # what a second screen still shows
    with pytest.raises(InvalidTransition):
        services.accept(stale_copy)
    assert _history(order) == ["pending", "preparing"]


@pytest.mark.django_db
def test_stale_version_is_rejected(make_order):
    order = make_order()
    rendered_version = order.version
    services.accept(order)

    with pytest.raises(StaleOrder):
        services.mark_ready(order, expected_version=rendered_version)
    order.refresh_from_db()
    assert order.status == "preparing"


@pytest.mark.django_db
def test_mark_ready_requires_preparing(make_order):
    order = make_order()
    with pytest.raises(InvalidTransition) as exc:
        services.mark_ready(order)
    assert exc.value.status == "pending"
    order.refresh_from_db()
    assert order.status == "pending"
    assert order.version == 1


@pytest.mark.django_db
def test_pickup_order_completes_from_ready(make_order):
    order = make_order(status="ready", service_type="pickup")
    flags = workflow.flags(order)
    assert flags["can_mark_completed"] is True
    assert flags["can_assign_driver"] is False

    services.complete(order)
    assert order.status == "completed"
    assert order.completed_at is not None


@pytest.mark.django_db
def test_delivery_order_cannot_complete_from_ready(make_order):
    order = make_order(status="ready")
    assert workflow.flags(order)["can_mark_completed"] is False
    with pytest.raises(InvalidTransition):
        services.complete(order)


@pytest.mark.django_db
def test_assign_driver_keeps_ready_and_takes_driver(make_order, driver):
    order = make_order(status="ready")

    services.assign_driver(order, driver)

    order.refresh_from_db()
    driver.refresh_from_db()
    assert order.status == "ready"
    assert order.driver_id == driver.pk
    assert order.assigned_to_driver_at is not None
    assert driver.is_available is False
    assert workflow.flags(order)["can_assign_driver"] is False


@pytest.mark.django_db
def test_assign_driver_rejects_pickup_orders(make_order, driver):
    order = make_order(status="ready", service_type="pickup")
    with pytest.raises(InvalidTransition):
        services.assign_driver(order, driver)
    driver.refresh_from_db()
    assert driver.is_available is True


@pytest.mark.django_db
def test_assign_driver_rejects_foreign_or_unavailable_driver(make_order, make_driver, other_restaurant):
    order = make_order(status="ready")
    foreign = make_driver(name="Pedro", restaurant_=other_restaurant)
    offline = make_driver(name="Jorge", available=False)

    with pytest.raises(InvalidTransition):
        services.assign_driver(order, foreign)
    with pytest.raises(InvalidTransition):
        services.assign_driver(order, offline)
    order.refresh_from_db()
    assert order.driver_id is None


@pytest.mark.django_db
def test_pick_up_only_by_assigned_driver(make_order, driver, make_driver):
    order = make_order(status="ready")
    services.assign_driver(order, driver)
    intruder = make_driver(name="Carlos")

    with pytest.raises(InvalidTransition):
        services.pick_up(order, intruder)

    services.pick_up(order, driver)
    assert order.status == "out_for_delivery"
    assert order.picked_up_at is not None


@pytest.mark.django_db
def test_driver_with_order_on_the_way_cannot_pick_up_another(make_order, driver):
    first = make_order(status="out_for_delivery", driver=driver)
    second = make_order(status="ready", driver=driver)

    with pytest.raises(services.DriverHasActiveOrder):
        services.pick_up(second, driver)
    assert first.status == "out_for_delivery"


@pytest.mark.django_db
def test_deliver_completes_and_frees_driver(make_order, driver):
    order = make_order(status="out_for_delivery", driver=driver)
    driver.is_available = False
    driver.save()

    services.deliver(order)

    order.refresh_from_db()
    driver.refresh_from_db()
    assert order.status == "completed"
    assert order.delivered_at is not None
    assert order.completed_at is not None
    assert _history(order) == ["pending", "delivered", "completed"]
    assert driver.is_available is True


@pytest.mark.django_db
def test_driver_deliver_checks_distance(make_order, driver, settings):
    settings.DRIVER_MAX_DELIVERY_DISTANCE_M = 500
    order = make_order(status="out_for_delivery", driver=driver)

    with pytest.raises(services.DeliveryTooFar) as exc:
        services.driver_deliver(order, driver, latitude=14.5995, longitude=-90.5130)
    assert exc.value.distance_m > 500
    order.refresh_from_db()
    assert order.status == "out_for_delivery"

    services.driver_deliver(order, driver, latitude=14.6408, longitude=-90.5134)
    order.refresh_from_db()
    assert order.status == "completed"


@pytest.mark.django_db
def test_cancel_requires_reason(make_order):
    order = make_order()
    with pytest.raises(InvalidTransition):
        services.cancel(order, reason="   ")

    services.cancel(order, reason="Cliente no contesta")
    assert order.status == "cancelled"
    assert order.cancellation_reason == "Cliente no contesta"
    assert order.cancelled_at is not None


@pytest.mark.django_db
def test_cancel_from_preparing_is_rejected(make_order):
    order = make_order(status="preparing")
    with pytest.raises(InvalidTransition):
        services.cancel(order, reason="Sin ingredientes")


@pytest.mark.django_db
def test_terminal_states_allow_nothing(make_order):
    for status in ("completed", "cancelled"):
        order = make_order(status=status)
        assert workflow.available_events(order) == []
        assert not any(workflow.flags(order).values())


@pytest.mark.django_db
def test_unknown_event_is_rejected(make_order):
    with pytest.raises(InvalidTransition):
        workflow.apply(make_order(), "teleport")


@pytest.mark.django_db
def test_transition_notifies_customer_after_commit(make_order, django_capture_on_commit_callbacks):
    order = make_order(service_type="pickup")

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        services.accept(order)

    assert callbacks
    n = Notification.objects.get(template="order_status")
    assert n.recipient == order.customer_phone
    assert n.event == "accept"
    assert order.order_number in n.context["message"]
    assert n.dedupe_key == f"order:{order.pk}:accept:{order.version}"


@pytest.mark.django_db
def test_rejected_transition_schedules_nothing(make_order, django_capture_on_commit_callbacks):
    order = make_order(status="completed")
    with django_capture_on_commit_callbacks() as callbacks:
        with pytest.raises(InvalidTransition):
            services.accept(order)
    assert callbacks == []
