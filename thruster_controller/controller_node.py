import rclpy
from rclpy.node import Node
from rclpy.time import Time
from std_msgs.msg import Float64MultiArray, MultiArrayDimension
from geometry_msgs.msg import Accel
from sensor_msgs.msg import Imu
from tf2_ros.buffer import Buffer
from tf2_ros.transform_listener import TransformListener
from thruster_controller.controller import ThrusterController
from thruster_controller.dynamics_model import DynamicsModel
from thruster_controller.geometry import GeometryTimeoutError, wait_for_positions
from thruster_controller.thrust_allocator import ThrustAllocator
from thruster_controller.vehicle_config import load_vehicle_from_yaml, thruster_table
import os
from ament_index_python.packages import get_package_share_directory, PackageNotFoundError


class ThrusterControllerNode(Node):
    def __init__(self):
        super().__init__('thruster_controller')

        # Declare parameters
        self.declare_parameter('vehicle_file', 'reference_vehicle.yaml')
        self.declare_parameter('base_frame', 'base_link')
        self.declare_parameter('imu_frame', 'imu_one_link')
        self.declare_parameter('use_tf_geometry', False)
        self.declare_parameter('tf_timeout', 10.0)  # Same budget as the original waitForTransform
        self.declare_parameter('max_iterations', 100)

        # Load vehicle description from YAML
        vehicle_file = self.get_parameter('vehicle_file').get_parameter_value().string_value
        try:
            pkg_dir = get_package_share_directory('thruster_controller')
            yaml_path = os.path.join(pkg_dir, 'config', vehicle_file)
        except PackageNotFoundError:
            yaml_path = os.path.join(
                os.path.dirname(__file__), '..', 'config', vehicle_file
            )

        self.get_logger().info(f"Loading vehicle from: {yaml_path}")
        config = load_vehicle_from_yaml(yaml_path)

        if self.get_parameter('use_tf_geometry').get_parameter_value().bool_value:
            config = self._acquire_geometry(config)

        for name, entry in thruster_table(config).items():
            self.get_logger().info(
                f"{name}: position={entry['position']}, direction={entry['direction']}, "
                f"bounds={entry['bounds']}"
            )

        # Dynamics model and allocator
        max_iterations = self.get_parameter('max_iterations').get_parameter_value().integer_value
        model = DynamicsModel(config)
        allocator = ThrustAllocator(
            model,
            max_iterations=max_iterations,
            clock=lambda: self.get_clock().now().nanoseconds * 1e-9,
            logger=self.get_logger()
        )
        self.controller = ThrusterController(model, allocator, logger=self.get_logger())

        self.get_logger().info(
            f"Loaded {model.n_thrusters} thrusters, mass={config.parameters.mass:.3f} kg"
        )

        # Publisher for thruster forces, one entry per thruster in config order
        self.thrust_pub = self.create_publisher(Float64MultiArray, 'command/thrust', 1)

        # Subscribers (queue depth 1: only the latest sample matters)
        self.create_subscription(Imu, 'state/imu', self.imu_callback, 1)
        self.create_subscription(Accel, 'command/accel', self.accel_callback, 1)

    def _acquire_geometry(self, config):
        """Block until every thruster frame is in TF, then use those positions."""
        base_frame = self.get_parameter('base_frame').get_parameter_value().string_value
        imu_frame = self.get_parameter('imu_frame').get_parameter_value().string_value
        timeout = self.get_parameter('tf_timeout').get_parameter_value().double_value

        tf_buffer = Buffer()
        self._tf_listener = TransformListener(tf_buffer, self, spin_thread=True)

        def lookup(frame):
            t = tf_buffer.lookup_transform(base_frame, frame, Time()).transform.translation
            return t.x, t.y, t.z

        frames = {f"{name}_link": name for name in config.thruster_names}
        try:
            positions = wait_for_positions(
                lookup, list(frames) + [imu_frame], timeout, logger=self.get_logger()
            )
        except GeometryTimeoutError as e:
            self.get_logger().fatal(str(e))
            raise

        self.get_logger().info(f"IMU offset from {imu_frame}: {positions[imu_frame]}")
        return config.with_positions({name: positions[frame] for frame, name in frames.items()})

    def imu_callback(self, msg: Imu):
        """Process IMU orientation and body rates"""
        q = msg.orientation
        w = msg.angular_velocity
        self.controller.handle_imu((q.x, q.y, q.z, q.w), (w.x, w.y, w.z))

    def accel_callback(self, msg: Accel):
        """Allocate thrust for a new acceleration command and publish it"""
        solution = self.controller.handle_accel_command(
            (msg.linear.x, msg.linear.y, msg.linear.z),
            (msg.angular.x, msg.angular.y, msg.angular.z),
        )
        if solution is None:
            return

        out = Float64MultiArray()
        out.layout.dim = [MultiArrayDimension(label=name, size=1, stride=1)
                          for name in solution.forces]
        out.data = [float(f) for f in solution.forces.values()]
        self.thrust_pub.publish(out)

        if not solution.converged:
            self.get_logger().warning(
                f"Allocation did not converge, residual={solution.residual_norm:.3e}",
                throttle_duration_sec=1.0
            )


def main(args=None):
    rclpy.init(args=args)
    node = ThrusterControllerNode()
    rclpy.spin(node)
    node.destroy_node()
    rclpy.shutdown()


if __name__ == '__main__':
    main()
