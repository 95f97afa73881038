"""Tests for footprint shapes and agency switching on profiles."""

import math

import pytest

from core.profile import (
    Agency,
    Box,
    Circle,
    Profile,
    make_autonomous,
    make_queued,
    make_strict,
)


def test_characteristic_lengths():
    assert Circle(1.5).characteristic_length == 1.5
    assert Box(3.0, 4.0).characteristic_length == pytest.approx(2.5)


@pytest.mark.parametrize("factory", [lambda: Circle(0.0), lambda: Circle(-1.0), lambda: Box(1.0, 0.0)])
def test_invalid_shapes(factory):
    with pytest.raises(ValueError):
        factory()


def test_factories_set_agency():
    shape = Circle(1.0)
    assert make_strict(shape).agency == Agency.STRICT
    assert make_autonomous(shape).agency == Agency.AUTONOMOUS

    queued = make_queued(shape, "lift_A")
    assert queued.get_agency() == Agency.QUEUED
    assert queued.get_queue_info().queue_id == "lift_A"


def test_agency_switching_clears_queue_info():
    profile = make_queued(Circle(1.0), "door_3")
    profile.set_to_autonomous()
    assert profile.agency == Agency.AUTONOMOUS
    assert profile.get_queue_info() is None

    profile.set_to_queued("door_4")
    assert profile.get_queue_info().queue_id == "door_4"

    profile.set_to_strict()
    assert profile.agency == Agency.STRICT
    assert profile.get_queue_info() is None


@pytest.mark.parametrize("queue_id", ["", None])
def test_queued_requires_queue_id(queue_id):
    with pytest.raises(ValueError):
        Profile(Circle(1.0), Agency.QUEUED, queue_id)
    with pytest.raises(ValueError):
        make_strict(Circle(1.0)).set_to_queued(queue_id)


def test_assign_overwrites_in_place():
    target = make_strict(Circle(1.0))
    alias = target
    target.assign(make_queued(Box(2.0, 2.0), "q"))

    assert alias.agency == Agency.QUEUED
    assert alias.shape.characteristic_length == pytest.approx(math.sqrt(2.0))
    assert alias.get_shape() is target.shape
