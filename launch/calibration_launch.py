################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

import os

from ament_index_python.packages import get_package_share_directory
from launch import LaunchDescription
from launch.actions import DeclareLaunchArgument
from launch.substitutions import LaunchConfiguration
from launch_ros.actions import Node


################################################################################
# ROS parameters
################################################################################


PACKAGE_NAME: str = "lighthouse_calibration"

DEFAULT_CONFIG_FILE: str = os.path.join(
    get_package_share_directory(PACKAGE_NAME), "config", "lighthouse_calibration.yaml"
)


################################################################################
# Node definitions
################################################################################


def generate_launch_description() -> LaunchDescription:
    ld: LaunchDescription = LaunchDescription()

    ld.add_action(
        DeclareLaunchArgument(
            "config_file",
            default_value=DEFAULT_CONFIG_FILE,
            description="Lighthouse and tracker configuration",
        )
    )
    ld.add_action(
        DeclareLaunchArgument(
            "calfile",
            default_value="",
            description="Calibration file, empty for ~/.ros/lighthouse_info",
        )
    )
    ld.add_action(
        DeclareLaunchArgument(
            "offline",
            default_value="false",
            description="Record from startup until the light stream goes quiet",
        )
    )

    calibration_node: Node = Node(
        package=PACKAGE_NAME,
        executable="lighthouse_calibration",
        name="lighthouse_calibration",
        output="screen",
        parameters=[
            {
                "config_file": LaunchConfiguration("config_file"),
                "calfile": LaunchConfiguration("calfile"),
                "offline": LaunchConfiguration("offline"),
            },
        ],
        remappings=[
            ("light", "/light"),
            ("trackers", "/trackers"),
            ("lighthouses", "/lighthouses"),
            ("trigger", "/trigger"),
        ],
    )
    ld.add_action(calibration_node)

    return ld
