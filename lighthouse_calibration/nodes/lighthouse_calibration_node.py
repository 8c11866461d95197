################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

from dataclasses import replace
from typing import Dict
from typing import Sequence

import numpy as np
import rclpy.node
import rclpy.publisher
import rclpy.qos
import rclpy.service
import rclpy.subscription
import rclpy.timer
import tf2_ros
from builtin_interfaces.msg import Time as TimeMsg
from geometry_msgs.msg import Pose as PoseMsg
from geometry_msgs.msg import PoseStamped as PoseStampedMsg
from geometry_msgs.msg import Quaternion as QuaternionMsg
from geometry_msgs.msg import TransformStamped as TransformStampedMsg
from nav_msgs.msg import Path as PathMsg
from std_srvs.srv import Trigger as TriggerSvc
from visualization_msgs.msg import Marker as MarkerMsg
from visualization_msgs.msg import MarkerArray as MarkerArrayMsg

from lighthouse_calibration.calibration_types.light_observation import (
    LightObservation,
)
from lighthouse_calibration.calibration_types.lighthouse import AxisCorrection
from lighthouse_calibration.calibration_types.solve_report import TriggerResult
from lighthouse_calibration.calibration_types.tracker import Tracker
from lighthouse_calibration.config.calibration_config import CalibrationConfig
from lighthouse_calibration.config.calibration_config import CalibrationConfigError
from lighthouse_calibration.config.calibration_params import CalibrationParams
from lighthouse_calibration.config.calibration_params import TopicsParams
from lighthouse_calibration.config.config_loader import load_config_yaml
from lighthouse_calibration.math_utils.pose6 import Pose6
from lighthouse_calibration.pipeline.calibration_session import CalibrationSession
from lighthouse_calibration.ros.message_builders import build_axis_corrections
from lighthouse_calibration.ros.message_builders import build_light_observation
from lighthouse_calibration.ros.message_builders import build_tracker_sensors
from lighthouse_calibration.tf.transform_publisher import PublishedTransform
from lighthouse_calibration.visualization.sensor_markers import ARROW_COLOR_RGBA
from lighthouse_calibration.visualization.sensor_markers import ARROW_SCALE
from lighthouse_calibration.visualization.sensor_markers import SensorMarker
from lighthouse_calibration.visualization.sensor_markers import build_sensor_markers
from lighthouse_calibration.visualization.trajectory import Trajectory
from lighthouse_msgs.msg import Light as LightMsg
from lighthouse_msgs.msg import Lighthouses as LighthousesMsg
from lighthouse_msgs.msg import Trackers as TrackersMsg


################################################################################
# ROS parameters
################################################################################


NODE_NAME: str = "lighthouse_calibration"

# ROS services
TRIGGER_SERVICE: str = "trigger"

# ROS topic prefixes, followed by configured device names
PATH_TOPIC_PREFIX: str = "path"
SENSORS_TOPIC_PREFIX: str = "sensors"

# ROS parameters
PARAM_CONFIG_FILE: str = "config_file"
PARAM_CALFILE: str = "calfile"
PARAM_OFFLINE: str = "offline"

DEFAULT_CONFIG_FILE: str = ""
DEFAULT_CALFILE: str = ""
DEFAULT_OFFLINE: bool = False

# Queue depth for decoder topics
DECODER_QUEUE_DEPTH: int = 1000

# Period of the inactivity timeout poll, in seconds
TIMEOUT_POLL_PERIOD_SECS: float = 0.1

################################################################################
# ROS node
################################################################################


class LighthouseCalibrationNode(rclpy.node.Node):
    def __init__(self) -> None:
        """
        Initialize resources
        """

        super().__init__(NODE_NAME)

        self.declare_parameter(PARAM_CONFIG_FILE, DEFAULT_CONFIG_FILE)
        self.declare_parameter(PARAM_CALFILE, DEFAULT_CALFILE)
        self.declare_parameter(PARAM_OFFLINE, DEFAULT_OFFLINE)

        config_file: str = str(self.get_parameter(PARAM_CONFIG_FILE).value)
        calfile: str = str(self.get_parameter(PARAM_CALFILE).value)
        offline: bool = bool(self.get_parameter(PARAM_OFFLINE).value)

        if not config_file:
            raise CalibrationConfigError(f"Parameter '{PARAM_CONFIG_FILE}' is required")

        # Configuration errors are fatal
        config: CalibrationConfig = _load_config(
            config_file, calfile=calfile, offline=offline
        )
        self._config: CalibrationConfig = config
        self._session: CalibrationSession = CalibrationSession(config)

        # QoS profiles
        decoder_qos: rclpy.qos.QoSProfile = rclpy.qos.QoSProfile(
            depth=DECODER_QUEUE_DEPTH,
            reliability=rclpy.qos.ReliabilityPolicy.RELIABLE,
        )
        latched_qos: rclpy.qos.QoSProfile = rclpy.qos.QoSProfile(
            depth=1,
            reliability=rclpy.qos.ReliabilityPolicy.RELIABLE,
            durability=rclpy.qos.DurabilityPolicy.TRANSIENT_LOCAL,
        )

        # ROS Publishers
        self._path_pubs: Dict[tuple[str, str], rclpy.publisher.Publisher] = {}
        self._sensor_pubs: Dict[str, rclpy.publisher.Publisher] = {}
        for tracker_entry in config.trackers:
            self._sensor_pubs[tracker_entry.serial] = self.create_publisher(
                msg_type=MarkerArrayMsg,
                topic=f"{SENSORS_TOPIC_PREFIX}/{tracker_entry.name}",
                qos_profile=latched_qos,
            )
            for lighthouse_entry in config.lighthouses:
                self._path_pubs[(lighthouse_entry.serial, tracker_entry.serial)] = (
                    self.create_publisher(
                        msg_type=PathMsg,
                        topic=(
                            f"{PATH_TOPIC_PREFIX}/{tracker_entry.name}"
                            f"/{lighthouse_entry.name}"
                        ),
                        qos_profile=latched_qos,
                    )
                )
        self._tf_static_broadcaster: tf2_ros.StaticTransformBroadcaster = (
            tf2_ros.StaticTransformBroadcaster(self)
        )

        # ROS Subscribers
        topics: TopicsParams = config.params.topics
        self._light_sub: rclpy.subscription.Subscription = self.create_subscription(
            msg_type=LightMsg,
            topic=topics.light,
            callback=self._handle_light,
            qos_profile=decoder_qos,
        )
        self._trackers_sub: rclpy.subscription.Subscription = (
            self.create_subscription(
                msg_type=TrackersMsg,
                topic=topics.trackers,
                callback=self._handle_trackers,
                qos_profile=decoder_qos,
            )
        )
        self._lighthouses_sub: rclpy.subscription.Subscription = (
            self.create_subscription(
                msg_type=LighthousesMsg,
                topic=topics.lighthouses,
                callback=self._handle_lighthouses,
                qos_profile=decoder_qos,
            )
        )

        # ROS Services
        self._trigger_service: rclpy.service.Service = self.create_service(
            srv_type=TriggerSvc,
            srv_name=TRIGGER_SERVICE,
            callback=self._handle_trigger,
        )

        # Inactivity timeout
        self._timeout_timer: rclpy.timer.Timer = self.create_timer(
            timer_period_sec=TIMEOUT_POLL_PERIOD_SECS, callback=self._poll_timeout
        )

        # Restore the previous calibration
        if self._session.load_calibration():
            self.get_logger().info(
                f"Applied calibration from {self._session.calibration_file}"
            )
        self._send_transforms()

        if self._session.is_recording():
            self.get_logger().info("Offline mode: recording started")

        self.get_logger().info("Lighthouse calibration node initialized")

    def stop(self) -> None:
        self.get_logger().info("Lighthouse calibration node deinitialized")

        self.destroy_node()

    def _now_ns(self) -> int:
        return int(self.get_clock().now().nanoseconds)

    def _handle_light(self, message: LightMsg) -> None:
        try:
            observation: LightObservation = build_light_observation(message)
        except ValueError as exc:
            self.get_logger().warn(f"Dropping light message: {exc}")
            return

        # Observations are keyed by arrival time
        now_ns: int = self._now_ns()
        self._session.ingest(observation, now_ns, now_ns=now_ns)

    def _handle_trackers(self, message: TrackersMsg) -> None:
        for tracker_msg in message.trackers:
            try:
                serial: str
                sensors: np.ndarray
                serial, sensors = build_tracker_sensors(tracker_msg)
            except ValueError as exc:
                self.get_logger().warn(f"Dropping tracker message: {exc}")
                continue

            if self._session.update_tracker(serial, sensors):
                self._publish_sensor_markers(serial)

    def _handle_lighthouses(self, message: LighthousesMsg) -> None:
        for lighthouse_msg in message.lighthouses:
            try:
                serial: str
                corrections: tuple[AxisCorrection, AxisCorrection]
                serial, corrections = build_axis_corrections(lighthouse_msg)
            except ValueError as exc:
                self.get_logger().warn(f"Dropping lighthouse message: {exc}")
                continue

            self._session.update_lighthouse(serial, corrections)

    def _handle_trigger(
        self, request: TriggerSvc.Request, response: TriggerSvc.Response
    ) -> TriggerSvc.Response:
        result: TriggerResult = self._session.trigger(self._now_ns())
        self._handle_result(result)

        response.success = result.success
        response.message = result.message

        return response

    def _poll_timeout(self) -> None:
        result: TriggerResult | None = self._session.poll_timeout(self._now_ns())
        if result is not None:
            self._handle_result(result)

    def _handle_result(self, result: TriggerResult) -> None:
        if result.success:
            self.get_logger().info(result.message)
        else:
            self.get_logger().warn(result.message)

        if result.report is None or not result.report.success:
            return

        if not result.report.saved:
            self.get_logger().warn("Calibration solved but could not be saved")

        self._send_transforms()
        if self._config.params.visualize.enabled:
            self._publish_trajectories(self._session.trajectories())

    def _send_transforms(self) -> None:
        published_transforms: Sequence[PublishedTransform] = (
            self._session.published_transforms(self._now_ns())
        )
        for published in published_transforms:
            tf_msg: TransformStampedMsg = _published_transform_to_msg(published)
            self._tf_static_broadcaster.sendTransform(tf_msg)

    def _publish_trajectories(self, trajectories: Sequence[Trajectory]) -> None:
        for trajectory in trajectories:
            publisher: rclpy.publisher.Publisher | None = self._path_pubs.get(
                (trajectory.lighthouse, trajectory.tracker)
            )
            if publisher is None:
                continue

            path_msg: PathMsg = PathMsg()
            path_msg.header.frame_id = trajectory.frame_id
            if trajectory.points:
                path_msg.header.stamp = _ns_to_time_msg(trajectory.points[-1].t_ns)
            for point in trajectory.points:
                pose_msg: PoseStampedMsg = PoseStampedMsg()
                pose_msg.header.stamp = _ns_to_time_msg(point.t_ns)
                pose_msg.header.frame_id = trajectory.frame_id
                pose_msg.pose = _pose_to_msg(point.pose)
                path_msg.poses.append(pose_msg)

            publisher.publish(path_msg)

    def _publish_sensor_markers(self, serial: str) -> None:
        publisher: rclpy.publisher.Publisher | None = self._sensor_pubs.get(serial)
        if publisher is None or not self._config.params.visualize.enabled:
            return

        tracker: Tracker | None = self._session.tracker(serial)
        if tracker is None:
            return

        stamp: TimeMsg = _ns_to_time_msg(self._now_ns())
        markers: list[SensorMarker] = build_sensor_markers(tracker)

        array_msg: MarkerArrayMsg = MarkerArrayMsg()
        for marker in markers:
            marker_msg: MarkerMsg = MarkerMsg()
            marker_msg.header.frame_id = serial
            marker_msg.header.stamp = stamp
            marker_msg.ns = self._config.tracker_name(serial)
            marker_msg.id = marker.sensor
            marker_msg.type = MarkerMsg.ARROW
            marker_msg.action = MarkerMsg.ADD
            marker_msg.pose.position.x = float(marker.position[0])
            marker_msg.pose.position.y = float(marker.position[1])
            marker_msg.pose.position.z = float(marker.position[2])
            marker_msg.pose.orientation = _quat_wxyz_to_msg(marker.quaternion_wxyz)
            marker_msg.scale.x = ARROW_SCALE[0]
            marker_msg.scale.y = ARROW_SCALE[1]
            marker_msg.scale.z = ARROW_SCALE[2]
            marker_msg.color.r = ARROW_COLOR_RGBA[0]
            marker_msg.color.g = ARROW_COLOR_RGBA[1]
            marker_msg.color.b = ARROW_COLOR_RGBA[2]
            marker_msg.color.a = ARROW_COLOR_RGBA[3]
            array_msg.markers.append(marker_msg)

        publisher.publish(array_msg)


def _load_config(config_file: str, *, calfile: str, offline: bool) -> CalibrationConfig:
    config: CalibrationConfig = load_config_yaml(config_file)

    params: CalibrationParams = config.params
    if calfile:
        params = params.replace(save=replace(params.save, calfile=calfile))
    if offline:
        params = params.replace(recording=replace(params.recording, offline=True))

    return CalibrationConfig(params, config.lighthouses, config.trackers)


def _ns_to_time_msg(t_ns: int) -> TimeMsg:
    stamp: TimeMsg = TimeMsg()
    stamp.sec = int(t_ns // int(1e9))
    stamp.nanosec = int(t_ns % int(1e9))

    return stamp


def _quat_wxyz_to_msg(wxyz: Sequence[float]) -> QuaternionMsg:
    quat: QuaternionMsg = QuaternionMsg()
    quat.w = float(wxyz[0])
    quat.x = float(wxyz[1])
    quat.y = float(wxyz[2])
    quat.z = float(wxyz[3])

    return quat


def _pose_to_msg(pose: Pose6) -> PoseMsg:
    pose_msg: PoseMsg = PoseMsg()
    pose_msg.position.x = float(pose.translation[0])
    pose_msg.position.y = float(pose.translation[1])
    pose_msg.position.z = float(pose.translation[2])
    pose_msg.orientation = _quat_wxyz_to_msg(pose.quaternion_wxyz())

    return pose_msg


def _published_transform_to_msg(transform: PublishedTransform) -> TransformStampedMsg:
    tf_msg: TransformStampedMsg = TransformStampedMsg()
    tf_msg.header.stamp = _ns_to_time_msg(transform.t_ns)
    tf_msg.header.frame_id = transform.parent_frame
    tf_msg.child_frame_id = transform.child_frame
    tf_msg.transform.translation.x = float(transform.translation_m[0])
    tf_msg.transform.translation.y = float(transform.translation_m[1])
    tf_msg.transform.translation.z = float(transform.translation_m[2])
    tf_msg.transform.rotation = _quat_wxyz_to_msg(transform.quaternion_wxyz)

    return tf_msg
