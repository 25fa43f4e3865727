#!/usr/bin/env python3
"""
Launch file for the thruster controller node.
"""
from launch import LaunchDescription
from launch_ros.actions import Node
from launch.actions import DeclareLaunchArgument
from launch.substitutions import LaunchConfiguration


def generate_launch_description():
    # Declare arguments
    vehicle_file_arg = DeclareLaunchArgument(
        'vehicle_file',
        default_value='reference_vehicle.yaml',
        description='Vehicle geometry YAML file name'
    )

    use_tf_geometry_arg = DeclareLaunchArgument(
        'use_tf_geometry',
        default_value='false',
        description='Read thruster positions from TF instead of the YAML file'
    )

    tf_timeout_arg = DeclareLaunchArgument(
        'tf_timeout',
        default_value='10.0',
        description='Startup wait for thruster transforms [s]'
    )

    max_iterations_arg = DeclareLaunchArgument(
        'max_iterations',
        default_value='100',
        description='Iteration cap for the bounded allocation solve'
    )

    # Controller node
    controller_node = Node(
        package='thruster_controller',
        executable='thruster_controller_node',
        name='thruster_controller',
        output='screen',
        parameters=[{
            'vehicle_file': LaunchConfiguration('vehicle_file'),
            'use_tf_geometry': LaunchConfiguration('use_tf_geometry'),
            'tf_timeout': LaunchConfiguration('tf_timeout'),
            'max_iterations': LaunchConfiguration('max_iterations'),
        }]
    )

    return LaunchDescription([
        vehicle_file_arg,
        use_tf_geometry_arg,
        tf_timeout_arg,
        max_iterations_arg,
        controller_node,
    ])
